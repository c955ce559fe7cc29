"""
Field extractor tests: messages, filters and ioctl parameters.
"""

import logging
import unittest
from pathlib import Path

import pytest

from snaplog.errors import PayloadFormatError, UnsupportedVariant
from snaplog.expressions import classify_expression
from snaplog.extractors import (
    NO_FLAG_VALUE,
    NO_MESSAGES_FOUND,
    NO_PARAMETERS,
    NO_VALUE,
    extract_fields,
    find_filter_contents,
    find_ioctl_parameters,
    find_message_contents,
    format_hex_payload,
    format_parameter_id,
    parse_ioctl_parameter,
)
from snaplog.records import FILTER_LABELS, READ_MESSAGE_LABELS, WRITE_MESSAGE_LABELS
from snaplog.regex_models import PassThruRegexRegistry
from snaplog.splitter import split_log

FIXTURE = Path(__file__).parent / "fixtures" / "sample_session.txt"
LOGGER_NAME = "tests.extractors"


def _fixture_block(index):
    return split_log(FIXTURE.read_text(encoding="utf-8"))[index]


def _fixture_expressions():
    logger = logging.getLogger(LOGGER_NAME)
    blocks = split_log(FIXTURE.read_text(encoding="utf-8"))
    return [classify_expression(b, logger=logger) for b in blocks]


class TestHexPayload(unittest.TestCase):

    def test_pairs_are_prefixed_and_uppercased(self):
        self.assertEqual(format_hex_payload("00 00 07 e8"), "0x00 0x00 0x07 0xE8")

    def test_wrapped_payload_is_joined(self):
        self.assertEqual(format_hex_payload("00 00 07 e8 50\n      03 aa"),
                         "0x00 0x00 0x07 0xE8 0x50 0x03 0xAA")

    def test_unspaced_payload(self):
        self.assertEqual(format_hex_payload("0000 07df"), "0x00 0x00 0x07 0xDF")

    def test_framepad_kept_as_one_group(self):
        self.assertEqual(format_hex_payload("[frame pad]", framepad=True), "0x[FRAMEPAD]")

    def test_odd_length_raises(self):
        with pytest.raises(PayloadFormatError):
            format_hex_payload("00 0")

    def test_parameter_ids(self):
        self.assertEqual(format_parameter_id("1"), "0x00000001")
        self.assertEqual(format_parameter_id("-1"), "0xffffffff")
        self.assertEqual(format_parameter_id("XYZ"), "XYZ (ERROR!)")
        self.assertEqual(format_parameter_id("4294967296"), "4294967296 (ERROR!)")


class TestMessageContents(unittest.TestCase):

    def setUp(self):
        self.expressions = _fixture_expressions()

    def test_write_message(self):
        result = find_message_contents(self.expressions[7])
        self.assertTrue(result.ok)
        self.assertEqual(len(result), 1)
        record = result.records[0]
        self.assertEqual(record.labels, list(WRITE_MESSAGE_LABELS))
        self.assertEqual(result.values[0], ["0", "ISO15765", "6", "TxF=00000040",
                                            "ISO15765_FRAME_PAD", "0x00 0x00 0x07 0xE0 0x10 0x03"])

    def test_read_messages(self):
        result = find_message_contents(self.expressions[8])
        self.assertEqual(len(result), 2)
        first, second = result.records

        self.assertEqual(first.labels, list(READ_MESSAGE_LABELS))
        self.assertEqual(first.get("Flag Value"), "TX_MSG_TYPE|START_OF_MESSAGE")
        self.assertEqual(first.payload, "0x00 0x00 0x07 0xE0")

        self.assertEqual(second.message_number, "1")
        self.assertEqual(second.get("TimeStamp"), "0.081s")
        self.assertEqual(second.get("Data Count"), "14")
        self.assertEqual(second.payload,
                         "0x00 0x00 0x07 0xE8 0x50 0x03 0x00 0x32 0x01 0xF4 0xAA 0xBB 0xCC 0xDD")

    def test_zero_flags_get_no_flag_value(self):
        second = find_message_contents(self.expressions[8]).records[1]
        self.assertEqual(second.get("RX Flags"), "RxS=00000000")
        self.assertEqual(second.get("Flag Value"), NO_FLAG_VALUE)

    def test_table_lists_each_message(self):
        table = find_message_contents(self.expressions[8]).table
        self.assertEqual(table.count("| Message Property"), 2)

    def test_no_messages(self):
        result = find_message_contents(self.expressions[9])
        self.assertTrue(result.ok)
        self.assertEqual(result.table, NO_MESSAGES_FOUND)
        self.assertEqual(result.values, [])

    def test_odd_payload_is_skipped(self):
        block = (
            "0.080s ++ PTWriteMsgs(1, 0x0012F3C0, 0x0012F6B0=2, 100)\n"
            "  Msg[0] ISO15765. 3 bytes. TxF=00000040 ISO15765_FRAME_PAD\n"
            "  \\__ 00 07e\n"
            "  Msg[1] ISO15765. 2 bytes. TxF=00000040 ISO15765_FRAME_PAD\n"
            "  \\__ 07 e0\n"
            "0.082s    0:STATUS_NOERROR"
        )
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME))
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = find_message_contents(expression)
        self.assertEqual([r.message_number for r in result.records], ["1"])

    def test_wrong_variant(self):
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = find_message_contents(self.expressions[0])
        self.assertFalse(result.ok)
        self.assertIsInstance(result.failure, UnsupportedVariant)
        self.assertEqual((result.table, result.values), ("", []))
        with pytest.raises(UnsupportedVariant):
            result.raise_for_failure()

    def test_pattern_without_groups_skips_messages(self):
        registry = PassThruRegexRegistry({"write_message_body": r"Msg\[\d+\]"})
        expression = classify_expression(_fixture_block(7), logger=logging.getLogger(LOGGER_NAME),
                                         registry=registry)
        with self.assertLogs(LOGGER_NAME, level="WARNING"):
            result = find_message_contents(expression)
        self.assertTrue(result.ok)
        self.assertEqual(len(result), 0)
        self.assertEqual(result.values, [])


class TestFilterContents(unittest.TestCase):

    def setUp(self):
        self.expressions = _fixture_expressions()

    def test_flow_control_filter(self):
        result = find_filter_contents(self.expressions[5])
        self.assertEqual([r.filter_kind for r in result.records], ["Mask", "Pattern", "FlowControl"])
        self.assertEqual(result.values[0], ["Mask", "0", "ISO15765", "4", "0x00000040",
                                            "ISO15765_FRAME_PAD", "0xFF 0xFF 0xFF 0xFF"])
        self.assertEqual(result.records[2].payload, "0x00 0x00 0x07 0xE0")
        self.assertEqual(result.records[0].labels, list(FILTER_LABELS))

    def test_zero_flags_get_no_value(self):
        mask = find_filter_contents(self.expressions[6]).records[0]
        self.assertEqual(mask.get("TX Flags"), "0x00000000")
        self.assertEqual(mask.get("Flag Value"), NO_VALUE)
        self.assertEqual(mask.payload, "0xFF 0xFF 0xFF 0xFF")

    def test_zero_flag_markers_differ_between_extractors(self):
        message = find_message_contents(self.expressions[8]).records[1]
        mask = find_filter_contents(self.expressions[6]).records[0]
        self.assertEqual(message.get("Flag Value"), "No Flag Value")
        self.assertEqual(mask.get("Flag Value"), "No Value")

    def test_null_flow_control(self):
        result = find_filter_contents(self.expressions[6])
        self.assertEqual(len(result), 3)
        self.assertEqual(result.values[2], ["FlowControl", "-1", "NULL", "NULL", "NULL", "NULL", "NULL"])
        self.assertEqual(result.records[2].get("Message Content"), "NULL")

    def test_table_has_trailing_newline_per_filter(self):
        table = find_filter_contents(self.expressions[5]).table
        self.assertEqual(table.count("| Filter Message Property"), 3)
        self.assertTrue(table.endswith("\n"))

    def test_wrong_variant(self):
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = find_filter_contents(self.expressions[4])
        self.assertIsInstance(result.failure, UnsupportedVariant)
        self.assertEqual(result.values, [])

    def test_only_first_zero_flag_word_gets_no_value(self):
        registry = PassThruRegexRegistry({
            "filter_body": (r"(Mask|Pattern|FlowControl) Msg\[\d+\] (\w+)\. (\d+) bytes\. "
                            r"TxF=(0x[0-9a-fA-F]{8}) RxS=(0x[0-9a-fA-F]{8})\s*\\__ ([0-9a-fA-F ]+)"),
        })
        block = (
            "0.060s ++ PTStartMsgFilter(1, PASS_FILTER, 0x0012F3C0, 0x0012F4D0, 0x00000000, 0x0012F6F0)\n"
            "  Mask Msg[0] ISO15765. 4 bytes. TxF=0x00000000 RxS=0x00000000\n"
            "  \\__ ff ff ff ff\n"
            "0.061s    0:STATUS_NOERROR"
        )
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME), registry=registry)
        result = find_filter_contents(expression)
        self.assertEqual(result.values, [["Mask", "ISO15765", "4", "0x00000000", "No Value",
                                          "0x00000000", "0xFF 0xFF 0xFF 0xFF"]])

    def test_pattern_without_groups_skips_segments(self):
        registry = PassThruRegexRegistry({"filter_body": r"(?:Mask|Pattern|FlowControl) Msg"})
        expression = classify_expression(_fixture_block(5), logger=logging.getLogger(LOGGER_NAME),
                                         registry=registry)
        with self.assertLogs(LOGGER_NAME, level="WARNING"):
            result = find_filter_contents(expression)
        self.assertTrue(result.ok)
        self.assertEqual(result.values, [])


class TestIoctlParameters(unittest.TestCase):

    def setUp(self):
        self.expressions = _fixture_expressions()

    def test_set_config(self):
        result = find_ioctl_parameters(self.expressions[4])
        self.assertEqual(result.values, [["0x00000001", "DATA_RATE", "500000"],
                                         ["0x00000003", "LOOPBACK", "0"]])
        self.assertIn("| Ioctl ID", result.table)
        self.assertIn("| Set Value", result.table)

    def test_crlf_parameters_and_bad_id(self):
        block = (
            "0.040s ++ PTIoctl(1, SET_CONFIG, 0x0012F5A0, 0x00000000)\r\n"
            "  2 parameter(s):\r\n"
            "    5:MY_PARAM=42\r\n"
            "    XYZ:OTHER=7\r\n"
            "0.041s    0:STATUS_NOERROR"
        )
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME))
        result = find_ioctl_parameters(expression)
        self.assertEqual(result.values, [["0x00000005", "MY_PARAM", "42"],
                                         ["XYZ (ERROR!)", "OTHER", "7"]])

    def test_cr_separated_parameters(self):
        block = (
            "0.040s ++ PTIoctl(1, SET_CONFIG, 0x0012F5A0, 0x00000000)\n"
            "  2 parameter(s):\n"
            "5:MY_PARAM=42\rXYZ:OTHER=7\n"
            "0.041s    0:STATUS_NOERROR"
        )
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME))
        result = find_ioctl_parameters(expression)
        self.assertEqual(result.values, [["0x00000005", "MY_PARAM", "42"],
                                         ["XYZ (ERROR!)", "OTHER", "7"]])

    def test_cr_only_log(self):
        block = (
            "0.040s ++ PTIoctl(1, SET_CONFIG, 0x0012F5A0, 0x00000000)\r"
            "  2 parameter(s):\r"
            "    1:DATA_RATE=500000\r"
            "    3:LOOPBACK=0\r"
            "0.041s    0:STATUS_NOERROR"
        )
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME))
        result = find_ioctl_parameters(expression)
        self.assertEqual(result.values, [["0x00000001", "DATA_RATE", "500000"],
                                         ["0x00000003", "LOOPBACK", "0"]])

    def test_no_parameters(self):
        block = "0.040s ++ PTIoctl(1, CLEAR_RX_BUFFER, 0x00000000, 0x00000000)\n0.041s    0:STATUS_NOERROR"
        expression = classify_expression(block, logger=logging.getLogger(LOGGER_NAME))
        result = find_ioctl_parameters(expression)
        self.assertTrue(result.ok)
        self.assertEqual(result.table, NO_PARAMETERS)
        self.assertEqual(result.values, [])

    def test_parse_ioctl_parameter(self):
        record = parse_ioctl_parameter("7:J1962_PINS=0x0000=0E08")
        self.assertEqual(record.values, ["0x00000007", "J1962_PINS", "0x0000=0E08"])
        self.assertIsNone(parse_ioctl_parameter("no separators"))
        self.assertIsNone(parse_ioctl_parameter("5=42"))

    def test_read_voltage_is_not_an_ioctl_variant(self):
        with self.assertLogs(LOGGER_NAME, level="ERROR"):
            result = find_ioctl_parameters(self.expressions[2])
        self.assertIsInstance(result.failure, UnsupportedVariant)


class TestExtractFields(unittest.TestCase):

    def test_dispatch(self):
        expressions = _fixture_expressions()
        self.assertIsNone(extract_fields(expressions[0]))
        self.assertEqual(len(extract_fields(expressions[4])), 2)
        self.assertEqual(len(extract_fields(expressions[5])), 3)
        self.assertEqual(len(extract_fields(expressions[8])), 2)


if __name__ == "__main__":
    unittest.main()
