import pytest

from hojapad.switch_haptics import (
    CENTER_FREQ_HIGH,
    CENTER_FREQ_LOW,
    DEFAULT_AMPLITUDE,
    Action,
    HapticDecoder,
    LinearState,
    amplitude_lookup,
    apply_command,
    exp2_lookup,
    frequency_lookup,
    haptics_disabled,
)


def packet(word):
    return word.to_bytes(4, "little") + bytes(4)


def test_apply_command_actions():
    assert apply_command(Action.IGNORE, 1.0, -3.0, -8.0, -8.0, 0.0) == -3.0
    assert apply_command(Action.SUBSTITUTE, -1.5, -3.0, -8.0, -8.0, 0.0) == -1.5
    assert apply_command(Action.DEFAULT, -1.5, -3.0, -8.0, -8.0, 0.0) == -8.0
    assert apply_command(Action.SUM, 0.125, -3.0, -8.0, -8.0, 0.0) == -2.875


def test_apply_command_sum_clamps():
    assert apply_command(Action.SUM, 0.125, 0.0, -8.0, -8.0, 0.0) == 0.0
    assert apply_command(Action.SUM, -0.125, -8.0, -8.0, -8.0, 0.0) == -8.0


def test_lookup_tables_fixed_points():
    assert amplitude_lookup(0) == -8.0
    assert exp2_lookup(0.0) == 1.0
    assert exp2_lookup(-8.0) == 0.0


def test_lookup_index_range():
    with pytest.raises(ValueError):
        amplitude_lookup(128)
    with pytest.raises(ValueError):
        frequency_lookup(-1)


def test_exp2_lookup_monotonic():
    values = [exp2_lookup(-8.0 + i / 32) for i in range(320)]
    assert all(a <= b for a, b in zip(values, values[1:]))


def test_default_state_frame():
    frame = LinearState().to_frame()
    assert frame.high_frequency == CENTER_FREQ_HIGH
    assert frame.low_frequency == CENTER_FREQ_LOW
    assert frame.high_amplitude == 0.0
    assert frame.low_amplitude == 0.0


def test_haptics_disabled():
    assert haptics_disabled(bytes([0x01, 0, 0, 0x40]))
    assert not haptics_disabled(bytes([0x00, 0, 0, 0x40]))
    assert not haptics_disabled(bytes([0x01, 0, 0, 0x80]))


def test_decode_short_packet_raises():
    with pytest.raises(ValueError):
        HapticDecoder().decode(b"\x00\x00")


def test_decode_zero_frames():
    decoder = HapticDecoder()
    assert decoder.decode(packet(0)) == []
    assert decoder.state.hi_amp == 0.0


def test_decode_type1_default_commands():
    decoder = HapticDecoder()
    frames = decoder.decode(packet(3 << 30))
    assert len(frames) == 3
    assert all(f == LinearState().to_frame() for f in frames)


def test_decode_type1_substitute_amplitude():
    decoder = HapticDecoder()
    frames = decoder.decode(packet((1 << 30) | (1 << 20)))
    assert len(frames) == 1
    assert frames[0].high_amplitude == 1.0
    assert frames[0].low_amplitude == 0.0
    assert decoder.state.hi_amp == 0.0


def test_decode_type2_explicit_values():
    decoder = HapticDecoder()
    word = (1 << 30) | (64 << 2) | (0 << 9) | (127 << 16) | (100 << 23)
    frames = decoder.decode(packet(word))
    assert len(frames) == 1
    assert decoder.state.hi_freq == frequency_lookup(64)
    assert decoder.state.lo_freq == frequency_lookup(127)
    assert decoder.state.lo_amp == amplitude_lookup(100)
    assert frames[0].high_frequency == CENTER_FREQ_HIGH
    assert frames[0].low_amplitude == exp2_lookup(amplitude_lookup(100))


def test_ignore_command_keeps_state():
    decoder = HapticDecoder()
    decoder.decode(packet((1 << 30) | (10 << 2) | (50 << 9) | (20 << 16) | (60 << 23)))
    before = LinearState(**vars(decoder.state))
    decoder.decode(packet((1 << 30) | (24 << 20) | (24 << 25)))
    assert decoder.state == before


def test_unrecognised_layout_repeats_previous_frames():
    decoder = HapticDecoder()
    first = decoder.decode(packet((1 << 30) | (1 << 20)))
    again = decoder.decode(packet((1 << 30) | 1 | (5 << 23)))
    assert again == first


def test_decode_type3_high_select():
    decoder = HapticDecoder()
    word = (2 << 30) | 1 | (32 << 1) | (24 << 8) | (24 << 13) | (1 << 18) | (90 << 23)
    frames = decoder.decode(packet(word))
    assert len(frames) == 2
    assert decoder.state.hi_freq == frequency_lookup(32)
    assert decoder.state.hi_amp == amplitude_lookup(90)
    assert decoder.state.lo_amp == 0.0
    assert frames[1] == frames[0]


def test_decode_type3_low_select():
    decoder = HapticDecoder()
    word = (2 << 30) | (32 << 1) | (24 << 8) | (24 << 13) | (1 << 18) | (90 << 23)
    decoder.decode(packet(word))
    assert decoder.state.lo_freq == frequency_lookup(32)
    assert decoder.state.lo_amp == amplitude_lookup(90)
    assert decoder.state.hi_amp == 0.0


def test_decode_type4_high_frequency():
    decoder = HapticDecoder()
    word = (1 << 30) | 0b111 | (127 << 23)
    frames = decoder.decode(packet(word))
    assert len(frames) == 1
    assert decoder.state.hi_freq == frequency_lookup(127)
    assert decoder.state.hi_amp == DEFAULT_AMPLITUDE
    assert frames[0].high_frequency == exp2_lookup(frequency_lookup(127)) * CENTER_FREQ_HIGH


def test_decode_type4_low_amplitude():
    decoder = HapticDecoder()
    word = (1 << 30) | 0b010 | (70 << 23)
    decoder.decode(packet(word))
    assert decoder.state.lo_amp == amplitude_lookup(70)
    assert decoder.state.hi_amp == DEFAULT_AMPLITUDE


def test_sum_command_accumulates():
    decoder = HapticDecoder()
    decoder.decode(packet((1 << 30) | (1 << 20)))
    decoder.decode(packet((1 << 30) | (30 << 20)))
    assert decoder.state.hi_amp == apply_command(Action.SUM, -0.125, 0.0, -8.0, -8.0, 0.0)