import pytest

from hojapad.imu import ImuProcessor, ImuSample
from hojapad.switch_commands import (
    CMD_ENABLE_IMU,
    CMD_GET_DEVICEINFO,
    CMD_GET_SPI,
    CMD_GET_TRIGGERET,
    CMD_SET_HCI,
    CMD_SET_INPUTMODE,
    CMD_SET_PAIRING,
    CMD_SET_PLAYER,
    OUT_ID_INFO,
    OUT_ID_RUMBLE,
    PRO_CONTROLLER_STRING,
    SwitchController,
    SwitchInput,
    player_number,
)
from hojapad.switch_haptics import HapticDecoder
from hojapad.switch_spi import spi_read

MAC = bytes((0x02, 0x00, 0x00, 0x00, 0x00, 0x01))


def _args(**bytes_at):
    data = bytearray(64)
    for key, value in bytes_at.items():
        data[int(key[1:])] = value
    return bytes(data)


def _controller(**kwargs):
    return SwitchController(mac_address=MAC, **kwargs)


@pytest.mark.parametrize(
    "bits, expected",
    [(0b1, 1), (0b11, 2), (0b111, 3), (0b1111, 4), (0b1001, 5), (0b1010, 6), (0b1011, 7), (0b0110, 8), (0, 1)],
)
def test_player_number(bits, expected):
    assert player_number(bits) == expected


def test_info_mac_address():
    report_id, report = _controller().info(0x01)
    assert report_id == 0x81
    assert report[0:3] == bytes((0x01, 0x00, 0x03))
    assert report[3:9] == MAC[::-1]


def test_info_unknown_code_echoed():
    report_id, report = _controller().handle_report(OUT_ID_INFO, bytes((0x80, 0x05)))
    assert report_id == 0x81
    assert report[0] == 0x05
    assert len(report) == 64


def test_device_info():
    report_id, report = _controller().command(CMD_GET_DEVICEINFO, bytes(64))
    assert report_id == 0x21
    assert report[1] == 0x81
    assert report[12] == 0x82
    assert report[13] == CMD_GET_DEVICEINFO
    assert report[14:18] == bytes((0x04, 0x33, 0x03, 0x02))
    assert report[24:26] == bytes((0x01, 0x02))


def test_trigger_elapsed_time():
    _, report = _controller().command(CMD_GET_TRIGGERET, bytes(64))
    assert report[12] == 0x83
    assert report[14:28] == bytes((100, 0)) * 7


def test_spi_read_reply():
    controller = _controller()
    _, report = controller.command(CMD_GET_SPI, _args(b11=0x3D, b12=0x60, b15=18))
    assert report[12] == 0x90
    expected = spi_read(0x60, 0x3D, 18)
    assert report[14 : 14 + len(expected)] == expected


def test_spi_read_too_long_raises():
    with pytest.raises(ValueError):
        _controller().command(CMD_GET_SPI, _args(b11=0, b12=0x60, b15=31))


def test_pairing_phase_one_updates_host():
    controller = _controller()
    host = bytes((0x0A, 0x0B, 0x0C, 0x0D, 0x0E, 0x0F))
    data = bytearray(64)
    data[11] = 1
    data[12:18] = host
    _, report = controller.command(CMD_SET_PAIRING, data)
    assert controller.host_changed
    assert bytes(controller.host_address) == host[::-1]
    assert report[12] == 0x81
    assert report[14] == 1
    assert report[15:21] == MAC[::-1]
    assert report[21:45] == PRO_CONTROLLER_STRING


def test_pairing_same_host_not_changed():
    host = bytes((0x0A, 0x0B, 0x0C, 0x0D, 0x0E, 0x0F))
    controller = SwitchController(mac_address=MAC, host_address=host[::-1])
    data = bytearray(64)
    data[11] = 1
    data[12:18] = host
    controller.command(CMD_SET_PAIRING, data)
    assert controller.host_changed is False


def test_pairing_phase_two_sends_ltk():
    controller = _controller()
    controller.ltk = bytes(range(16))
    _, report = controller.command(CMD_SET_PAIRING, _args(b11=2))
    assert report[14] == 2
    assert report[15:31] == bytes(range(16))


def test_set_hci_requests_shutdown():
    controller = _controller()
    controller.command(CMD_SET_HCI, bytes(64))
    assert controller.shutdown_requested


def test_set_player():
    controller = _controller()
    _, report = controller.command(CMD_SET_PLAYER, _args(b11=0b0111))
    assert controller.player == 3
    assert report[12] == 0x80


def test_input_report_requires_mode_0x30():
    controller = _controller()
    assert controller.input_report(SwitchInput()) is None
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    report_id, report = controller.input_report(SwitchInput())
    assert report_id == 0x30


def test_input_report_sticks_and_buttons():
    controller = _controller()
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    data = SwitchInput(right_buttons=0x11, shared_buttons=0x22, left_buttons=0x33,
                       ls_x=0x123, ls_y=0x456, rs_x=0x789, rs_y=0xABC)
    _, report = controller.input_report(data)
    assert report[2:5] == bytes((0x11, 0x22, 0x33))
    assert report[5:8] == bytes((0x23, 0x01, 0x45))
    assert report[8:11] == bytes((0x89, 0x07, 0xAB))


def test_input_report_sequence_byte_cycles():
    controller = _controller()
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    values = [controller.input_report(SwitchInput())[1][11] for _ in range(4)]
    assert values == [0xB, 0xC, 0xA, 0xB]


def test_input_report_calls_hook():
    calls = []
    controller = _controller()
    controller.after_input_report = lambda: calls.append(True)
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    controller.input_report(SwitchInput())
    assert calls == [True]


def test_timer_counts_milliseconds():
    controller = _controller()
    first = controller.command(CMD_SET_INPUTMODE, _args(b11=0x30), timestamp=0)[1]
    second = controller.input_report(SwitchInput(), timestamp=5000)[1]
    third = controller.input_report(SwitchInput(), timestamp=5000)[1]
    assert first[0] == 0
    assert second[0] == 0
    assert third[0] == 5


def test_imu_mode_one_repeats_last_sample():
    imu = ImuProcessor()
    controller = _controller(imu=imu)
    controller.command(CMD_ENABLE_IMU, _args(b11=1))
    assert imu.enabled
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    imu.push(ImuSample(ax=1, ay=-2, az=3, gx=4, gy=5, gz=6), 0)
    _, report = controller.input_report(SwitchInput())
    assert report[12:14] == (-2).to_bytes(2, "little", signed=True)
    assert report[14:16] == (1).to_bytes(2, "little", signed=True)
    assert report[12:24] == report[24:36] == report[36:48]


def test_imu_mode_two_packs_quaternion():
    imu = ImuProcessor()
    controller = _controller(imu=imu)
    controller.command(CMD_ENABLE_IMU, _args(b11=2))
    controller.command(CMD_SET_INPUTMODE, _args(b11=0x30))
    imu.push(ImuSample(ax=-7, ay=8, az=9), 0)
    _, report = controller.input_report(SwitchInput())
    assert report[12] & 0x3 == 2
    assert report[31:33] == (-7).to_bytes(2, "little", signed=True)


def test_rumble_report_decodes_frames():
    controller = _controller()
    packet = bytes((0x00, 0x00, 0x08, 0x00, 0x40, 0x40, 0x00, 0x00))
    assert controller.handle_report(OUT_ID_RUMBLE, packet) is None
    expected = HapticDecoder().decode(packet[2:6])
    assert controller.rumble_frames == expected
    assert len(controller.rumble_frames) == 1


def test_bad_address_length_raises():
    with pytest.raises(ValueError):
        SwitchController(mac_address=bytes(5))