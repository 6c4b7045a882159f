import pytest

from hojapad.switch_analog import calibration_data, decode, encode


@pytest.mark.parametrize(
    "lower, upper",
    [(0, 0), (0xFFF, 0xFFF), (2048, 2048), (1, 4094), (0x123, 0xABC), (4095, 0)],
)
def test_round_trip(lower, upper):
    assert decode(encode(lower, upper)) == (lower, upper)


def test_encode_length():
    assert len(encode(100, 200)) == 3


def test_encode_center_bytes():
    assert encode(2048, 2048) == bytes((0x00, 0x08, 0x80))


def test_encode_masks_to_twelve_bits():
    assert decode(encode(0x1FFF, 0x1000)) == (0xFFF, 0)


def test_decode_wrong_length():
    with pytest.raises(ValueError):
        decode(b"\x00\x01")


def test_calibration_data_layout():
    data = calibration_data()
    assert len(data) == 18
    for start in range(0, 18, 3):
        assert decode(data[start:start + 3]) == (128 << 4, 128 << 4)