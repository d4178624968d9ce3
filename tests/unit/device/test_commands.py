"""Unit tests for the DisplayCommands command layer."""

from __future__ import annotations

import pytest

from iiyama_display.device.commands import DisplayCommands, clamp_volume
from iiyama_display.protocol.exceptions import ChecksumError, UnexpectedStatusError, UnmappedEnumError
from iiyama_display.protocol.frame import encode_frame, encode_report
from iiyama_display.protocol.input_map import InputSource
from iiyama_display.transport.exceptions import ReadTimeoutError
from tests.helpers.expectations import expect_async_exception
from tests.helpers.fake_display import FakeDisplay


@pytest.fixture
def commands(display):
    return DisplayCommands(display, monitor_id=1, device_label="test-display")


class TestClampVolume:
    @pytest.mark.parametrize(("value", "expected"), [(-10, 0), (0, 0), (42, 42), (100, 100), (150, 100)])
    def test_clamp(self, value, expected) -> None:
        assert clamp_volume(value) == expected


class TestGetters:
    @pytest.mark.asyncio
    async def test_get_power_on(self, commands, display: FakeDisplay):
        assert await commands.get_power() is True
        assert display.requests[-1].data == bytes([0x19])

    @pytest.mark.asyncio
    async def test_get_power_off(self, commands, display: FakeDisplay):
        display.power = False
        assert await commands.get_power() is False

    @pytest.mark.asyncio
    async def test_get_power_invalid_state(self, commands, display: FakeDisplay):
        display.overrides[0x19] = encode_report(1, [0x19, 0x05])
        err = await expect_async_exception(commands.get_power, UnexpectedStatusError)
        assert err.last_error == "No response (Power)"
        assert err.status == 0x05

    @pytest.mark.asyncio
    async def test_get_volume(self, commands, display: FakeDisplay):
        display.volume = 73
        assert await commands.get_volume() == 73

    @pytest.mark.asyncio
    async def test_get_input(self, commands, display: FakeDisplay):
        display.input_code = 0x16
        assert await commands.get_input() == InputSource.MEDIA_PLAYER

    @pytest.mark.asyncio
    async def test_get_input_unknown_code(self, commands, display: FakeDisplay):
        display.input_code = 0x99
        err = await expect_async_exception(commands.get_input, UnmappedEnumError)
        assert err.value == 0x99

    @pytest.mark.asyncio
    async def test_get_operating_hours_is_big_endian(self, commands, display: FakeDisplay):
        display.operating_hours = 0x1234
        assert await commands.get_operating_hours() == 0x1234
        assert display.requests[-1].data == bytes([0x0F, 0x02])

    @pytest.mark.asyncio
    async def test_get_operating_hours_short_reply(self, commands, display: FakeDisplay):
        display.overrides[0x0F] = encode_report(1, [0x0F, 0x01])
        await expect_async_exception(commands.get_operating_hours, UnexpectedStatusError)

    @pytest.mark.asyncio
    async def test_get_label_model_and_firmware(self, commands, display: FakeDisplay):
        assert await commands.get_label(1) == "TE8612MIS"
        assert display.requests[-1].data == bytes([0xA2, 0x01])
        assert await commands.get_label(0) == "FW1.02"
        assert display.requests[-1].data == bytes([0xA2, 0x00])

    @pytest.mark.asyncio
    async def test_get_label_trims_padding(self, commands, display: FakeDisplay):
        display.model = "  LH5570 \x00\x00"
        assert await commands.get_label(1) == "LH5570"

    @pytest.mark.asyncio
    async def test_get_label_other_selector_reads_firmware(self, commands, display: FakeDisplay):
        assert await commands.get_label(7) == "FW1.02"
        assert display.requests[-1].data == bytes([0xA2, 0x00])


class TestGetCommand:
    @pytest.mark.asyncio
    async def test_status_reply_to_get_is_rejected(self, commands, display: FakeDisplay):
        display.overrides[0x19] = encode_report(1, [0x00, 0x03])
        err = await expect_async_exception(commands.get_command, UnexpectedStatusError, 0x19)
        assert err.last_error == "Unexpected ACK/NACK/NAV for GET cmd 0x19"
        assert err.status == 0x03

    @pytest.mark.asyncio
    async def test_reply_without_echo_is_accepted(self, commands, display: FakeDisplay):
        display.overrides[0x45] = encode_report(1, [0x99, 0x20])
        assert await commands.get_volume() == 0x20

    @pytest.mark.asyncio
    async def test_wrong_header(self, commands, display: FakeDisplay):
        display.overrides[0x19] = encode_frame(1, 0x19, [0x02])
        err = await expect_async_exception(commands.get_command, UnexpectedStatusError, 0x19)
        assert err.reason == "unexpected_header"

    @pytest.mark.asyncio
    async def test_corrupted_reply(self, commands, display: FakeDisplay):
        reply = bytearray(encode_report(1, [0x19, 0x02]))
        reply[-1] ^= 0x01
        display.overrides[0x19] = bytes(reply)
        err = await expect_async_exception(commands.get_power, ChecksumError)
        assert err.last_error == "Invalid response / checksum"

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self, commands, display: FakeDisplay):
        display.failures[0x45] = ReadTimeoutError("header")
        err = await expect_async_exception(commands.get_volume, ReadTimeoutError)
        assert err.last_error == "Read header failed"


class TestSetters:
    @pytest.mark.asyncio
    async def test_set_power_on(self, commands, display: FakeDisplay):
        display.power = False
        assert await commands.set_power(True) is True
        assert display.requests[-1].data == bytes([0x18, 0x02])
        assert display.power is True

    @pytest.mark.asyncio
    async def test_set_power_off(self, commands, display: FakeDisplay):
        assert await commands.set_power(False) is True
        assert display.requests[-1].data == bytes([0x18, 0x01])

    @pytest.mark.asyncio
    async def test_set_volume_is_clamped(self, commands, display: FakeDisplay):
        assert await commands.set_volume(150) is True
        assert display.requests[-1].command == 0x44
        assert display.requests[-1].data == bytes([0x44, 100])

    @pytest.mark.asyncio
    async def test_set_input(self, commands, display: FakeDisplay):
        assert await commands.set_input(1) is True
        assert display.requests[-1].data == bytes([0xAC, 0x06, 0x00, 0x00, 0x00])
        assert display.input_code == 0x06

    @pytest.mark.asyncio
    async def test_set_input_unmapped_sends_nothing(self, commands, display: FakeDisplay):
        err = await expect_async_exception(commands.set_input, UnmappedEnumError, 9)
        assert err.last_error == "Unknown input enum: 9"
        assert display.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "message"),
        [
            (0x03, "NACK for SET cmd 0x18"),
            (0x04, "NAV for SET cmd 0x18"),
            (0x07, "Unexpected response code for SET cmd 0x18: 0x07"),
        ],
    )
    async def test_set_failures(self, commands, display: FakeDisplay, status, message):
        display.set_status[0x18] = status
        err = await expect_async_exception(commands.set_power, UnexpectedStatusError, True)
        assert err.last_error == message
        assert err.command == 0x18
        assert err.status == status

    @pytest.mark.asyncio
    async def test_set_reply_without_status(self, commands, display: FakeDisplay):
        display.overrides[0x44] = encode_report(1, [0x44])
        err = await expect_async_exception(commands.set_volume, UnexpectedStatusError, 10)
        assert err.reason == "missing_status"
