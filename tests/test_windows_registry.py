import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from bt_dualboot.bluetooth.common import RegistryFormatError
from bt_dualboot.bluetooth.windows_registry import (
    clean_reged_output,
    export_keys_branch,
    parse_registry_export,
    read_reg_file,
)
from tests.fixtures import LTK_HEX, REGED_EXPORT

KEYS = r"HKEY_LOCAL_MACHINE\SYSTEM\ControlSet001\Services\BTHPORT\Parameters\Keys"


class ParseRegistryExportTests(unittest.TestCase):
    def test_parses_paths_and_unquotes_names_and_values(self):
        entries = parse_registry_export(REGED_EXPORT)

        self.assertIn(KEYS, entries)
        self.assertEqual(entries[KEYS], {})
        device = entries[KEYS + r"\c0fbf9601c13\c8290a11f4c1"]
        self.assertEqual(device["LTK"], LTK_HEX)
        self.assertEqual(device["EDIV"], "dword:00012345")
        self.assertEqual(
            entries[KEYS + r"\c0fbf9601c13"]["001a7dda710b"],
            "hex:78,6d,c4,33,2d,38,5a,48,c4,e7,18,fe,0b,84,ff,20",
        )

    def test_sections_without_blank_line_are_split(self):
        text = '[A\\B]\n"x"="1"\n[A\\C]\n"y"="2"\n'

        entries = parse_registry_export(text)

        self.assertEqual(entries, {"A\\B": {"x": "1"}, "A\\C": {"y": "2"}})

    def test_segments_may_contain_any_character_but_backslash(self):
        text = '[HKLM\\Odd Name (x86) = weird!]\n"Value"=dword:00000001\n'

        entries = parse_registry_export(text)

        self.assertEqual(entries["HKLM\\Odd Name (x86) = weird!"], {"Value": "dword:00000001"})

    def test_quoted_path_and_unquoted_names_are_tolerated(self):
        text = '["HKLM\\Keys"]\nLTK="hex:00"\n@="default"\n'

        entries = parse_registry_export(text)

        self.assertEqual(entries["HKLM\\Keys"], {"LTK": "hex:00", "@": "default"})

    def test_continued_hex_values_are_joined(self):
        text = (
            "[HKLM\\Keys\\c0fbf9601c13\\c8290a11f4c1]\n"
            '"LTK"=hex:c2,90,19,3b,1e,be,c7,d0,\\\n'
            "  18,c6,4f,e9,67,ad,6b,d5\n"
        )

        entries = parse_registry_export(text)

        self.assertEqual(entries["HKLM\\Keys\\c0fbf9601c13\\c8290a11f4c1"]["LTK"], LTK_HEX)

    def test_string_value_ending_in_backslash_is_not_continued(self):
        text = '[K]\n"Path"="C:\\\\"\n"Next"=dword:00000001\n'

        entries = parse_registry_export(text)

        self.assertEqual(entries["K"], {"Path": "C:\\\\", "Next": "dword:00000001"})

    def test_repeated_path_merges_values(self):
        text = '[K]\n"a"="1"\n[L]\n[K]\n"b"="2"\n'

        self.assertEqual(parse_registry_export(text)["K"], {"a": "1", "b": "2"})

    def test_comments_and_blank_lines_are_skipped(self):
        text = '; exported\n\n[K]\n\n"a"="1"\n'

        self.assertEqual(parse_registry_export(text), {"K": {"a": "1"}})

    def test_value_before_any_path_is_fatal(self):
        with self.assertRaises(RegistryFormatError):
            parse_registry_export('"LTK"=hex:00\n[K]\n')

    def test_garbage_line_is_fatal(self):
        with self.assertRaises(RegistryFormatError):
            parse_registry_export("[K]\nthis is not a value line\n")

    def test_empty_export_is_fatal(self):
        with self.assertRaises(RegistryFormatError):
            parse_registry_export("\n\n")

    def test_unterminated_path_is_fatal(self):
        with self.assertRaises(RegistryFormatError):
            parse_registry_export("[HKLM\\Keys\n")


class CleanOutputTests(unittest.TestCase):
    def test_header_and_trailer_are_removed(self):
        output = (
            "Windows Registry Editor Version 5.00\r\n"
            "\r\n"
            "[K]\r\n"
            '"a"="1"\r\n'
            "reged version 0.1 140201, (c) Petter N Hagen\r\n"
            "garbage after trailer\r\n"
        )

        cleaned = clean_reged_output(output)

        self.assertEqual(cleaned, '\n[K]\n"a"="1"')
        self.assertEqual(parse_registry_export(cleaned), {"K": {"a": "1"}})

    def test_read_reg_file_handles_utf16_exports(self):
        text = "Windows Registry Editor Version 5.00\r\n" + REGED_EXPORT.replace("\n", "\r\n")
        with tempfile.TemporaryDirectory() as tmpdir:
            reg_path = Path(tmpdir) / "keys.reg"
            reg_path.write_bytes(("\ufeff" + text).encode("utf-16-le"))

            cleaned = read_reg_file(str(reg_path))

        entries = parse_registry_export(cleaned)
        self.assertIn(KEYS + r"\c0fbf9601c13\c8290a11f4c1", entries)

    def test_read_reg_file_handles_utf8_exports(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            reg_path = Path(tmpdir) / "keys.reg"
            reg_path.write_text("Windows Registry Editor Version 5.00\n" + REGED_EXPORT, encoding="utf-8")

            entries = parse_registry_export(read_reg_file(str(reg_path)))

        self.assertIn(KEYS, entries)


class ExportKeysBranchTests(unittest.TestCase):
    def test_runs_reged_and_cleans_output(self):
        output = "Header line\n" + REGED_EXPORT + "reged version 0.1\n"
        with tempfile.TemporaryDirectory() as tmpdir:
            hive = Path(tmpdir) / "SYSTEM"
            hive.write_bytes(b"regf")
            completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=output, stderr="")
            with mock.patch(
                "bt_dualboot.bluetooth.windows_registry.subprocess.run", return_value=completed
            ) as run:
                text = export_keys_branch(str(hive))

        command = run.call_args.args[0]
        self.assertEqual(command[0], "reged")
        self.assertIn(str(hive), command)
        self.assertNotIn("reged version", text)
        self.assertIn(KEYS, parse_registry_export(text))

    def test_missing_hive_raises(self):
        with self.assertRaises(FileNotFoundError):
            export_keys_branch("/nonexistent/Windows/System32/config/SYSTEM")

    def test_nonzero_exit_raises_runtime_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            hive = Path(tmpdir) / "SYSTEM"
            hive.write_bytes(b"regf")
            completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="bad hive")
            with mock.patch(
                "bt_dualboot.bluetooth.windows_registry.subprocess.run", return_value=completed
            ):
                with self.assertRaises(RuntimeError) as ctx:
                    export_keys_branch(str(hive))

        self.assertIn("bad hive", str(ctx.exception))

    def test_missing_reged_raises_runtime_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            hive = Path(tmpdir) / "SYSTEM"
            hive.write_bytes(b"regf")
            with mock.patch(
                "bt_dualboot.bluetooth.windows_registry.subprocess.run",
                side_effect=FileNotFoundError("reged"),
            ):
                with self.assertRaises(RuntimeError):
                    export_keys_branch(str(hive))


if __name__ == "__main__":
    unittest.main()
