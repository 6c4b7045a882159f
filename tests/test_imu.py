import math

import pytest

from hojapad.imu import (
    CALIBRATE_CYCLES,
    ImuProcessor,
    ImuSample,
    Quaternion,
    average_value,
)


@pytest.mark.parametrize("value", [-32768, -100, 0, 7, 32767])
def test_average_of_equal_values(value):
    assert average_value(value, value) == value


def test_average_symmetric_and_truncates_toward_zero():
    assert average_value(5, 12) == average_value(12, 5)
    assert average_value(-3, 0) == -average_value(3, 0)


def test_average_clamped():
    assert average_value(32767, 32767) == 32767
    assert average_value(-32768, -32768) == -32768


def test_quaternion_identity_multiply():
    q = Quaternion(w=0.5, x=0.1, y=-0.2, z=0.3)
    assert Quaternion().multiply(q) == q
    assert q.multiply(Quaternion()) == q


def test_quaternion_normalized_unit():
    q = Quaternion(w=2.0, x=1.0, y=-3.0, z=0.5).normalized()
    assert math.sqrt(q.w ** 2 + q.x ** 2 + q.y ** 2 + q.z ** 2) == pytest.approx(1.0)


def test_push_and_last():
    imu = ImuProcessor()
    sample = ImuSample(1, 2, 3, 0, 0, 0)
    imu.push(sample, 1000)
    assert imu.last() == sample
    assert imu.quaternion.w == pytest.approx(1.0)
    assert imu.accel == (1, 2, 3)


def test_rotation_stays_normalized():
    imu = ImuProcessor()
    for t in range(1000, 20000, 1000):
        imu.push(ImuSample(0, 0, 0, 0, 0, 5000), t)
    q = imu.quaternion
    assert math.sqrt(q.w ** 2 + q.x ** 2 + q.y ** 2 + q.z ** 2) == pytest.approx(1.0)
    assert q.z > 0
    assert q.x == pytest.approx(0.0)


def test_pack_identity():
    imu = ImuProcessor()
    packet = imu.pack_quat(0)
    assert packet["mode"] == 2
    assert packet["max_index"] == 3
    assert packet["components"] == (0, 0, 0)
    assert packet["timestamp_count"] == 3


def test_pack_timestamp_advances():
    imu = ImuProcessor()
    imu.pack_quat(0)
    first = imu.pack_quat(5000)
    second = imu.pack_quat(5000)
    assert first["timestamp_start"] == 0
    assert second["timestamp_start"] == 5


def test_task_disabled_pushes_nothing():
    imu = ImuProcessor()
    assert imu.task(1000, ImuSample(1, 1, 1, 1, 1, 1), ImuSample(1, 1, 1, 1, 1, 1)) is None
    assert imu.last() == ImuSample()


def test_task_averages_two_imus():
    imu = ImuProcessor()
    imu.enabled = True
    a = ImuSample(10, -20, 30, 40, -50, 60)
    out = imu.task(1000, a, a)
    assert out == a
    assert imu.last() == a


def test_task_single_imu():
    imu = ImuProcessor()
    imu.enabled = True
    imu.offsets_0 = [5] * 6
    a = ImuSample(10, 20, 30, 40, 50, 60)
    assert imu.task(1000, a, None) == a


def test_task_subtracts_offsets():
    imu = ImuProcessor()
    imu.enabled = True
    a = ImuSample(10, 20, 30, 40, 50, 60)
    imu.offsets_0 = a._values()
    imu.offsets_1 = a._values()
    assert imu.task(1000, a, a) == ImuSample()


def test_calibration_runs_full_cycle():
    imu = ImuProcessor()
    a = ImuSample(1, 2, 3, 4, 5, 6)
    b = ImuSample(-1, -2, -3, -4, -5, -6)
    imu.calibrate_start(a, b)
    assert imu.calibrating
    assert imu.offsets_0 == [1, 2, 3, 4, 5, 6]
    assert imu.offsets_1 == [-1, -2, -3, -4, -5, -6]
    finished = [imu.calibrate_step(a, b) for _ in range(CALIBRATE_CYCLES + 1)]
    assert finished[-1] is True
    assert not any(finished[:-1])
    assert not imu.calibrating
    assert imu.offsets_0 == [1, 2, 3, 4, 5, 6]


def test_task_during_calibration_does_not_push():
    imu = ImuProcessor()
    imu.enabled = True
    a = ImuSample(7, 7, 7, 7, 7, 7)
    imu.calibrate_start(a, a)
    assert imu.task(1000, a, a) is None
    assert imu.last() == ImuSample()