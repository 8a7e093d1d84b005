# tests/test_cli.py
"""
Tests for the ``ctsl`` command-line tool.
"""

import json
import logging
import textwrap

import pytest

from ctsl.main import (
    EXIT_ERROR,
    EXIT_INFRA,
    EXIT_OK,
    CtslLogHandler,
    _configure_logging,
    main,
)


CLEAN_UNIT = textwrap.dedent('''\
    ref x: variable { CLEAR };
    ref y: variable { DET, CLEAR };
    constraint x <: y @ 3;
''')

VIOLATED_UNIT = textwrap.dedent('''\
    ref x: variable { RND, CLEAR };
    ref y: variable { OPE };
    constraint x <: y @ 7 "return value";
''')


@pytest.fixture(autouse=True)
def reset_cli_logging():
    yield
    for name in ("ctsl", "cryptotype_shims"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            if isinstance(handler, CtslLogHandler):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_unit(tmp_path):
    def _write(text, name="unit.ctsl"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


class TestExtractCommand:

    def test_clean_unit(self, write_unit, capsys):
        # y resolves to DET: CLEAR <: DET holds but still needs a conversion
        assert main(["extract", write_unit(CLEAN_UNIT)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "x <: y @ 3" in out
        assert "Line 3: x CLEAR => DET" in out
        assert "No subtype violations detected." in out
        assert out.endswith("1 conversion(s) recorded.\n")

    def test_violation_sets_exit_code(self, write_unit, capsys):
        assert main(["extract", write_unit(VIOLATED_UNIT)]) == EXIT_ERROR
        out = capsys.readouterr().out
        assert "line 7: x:RND is not a subtype of y:OPE" in out
        assert "note: return value" in out

    def test_json_report(self, write_unit, capsys):
        code = main(["extract", write_unit(VIOLATED_UNIT), "-f", "json",
                     "--quiet-diagnostics"])
        assert code == EXIT_ERROR
        doc = json.loads(capsys.readouterr().out)
        assert doc["violation_count"] == 1
        assert doc["constraints_checked"] == 1
        assert doc["conversions"] == {
            "x": [{"pos": 7, "from_type": "RND", "to_type": "OPE"}]}

    def test_output_file_and_ledger(self, write_unit, tmp_path, capsys):
        report = tmp_path / "out" / "report.txt"
        ledger = tmp_path / "out" / "ledger.json"
        code = main(["extract", write_unit(CLEAN_UNIT), "-o", str(report),
                     "--ledger", str(ledger)])
        assert code == EXIT_OK
        assert capsys.readouterr().out == ""
        assert "Line 3: x CLEAR => DET" in report.read_text(encoding="utf-8")
        doc = json.loads(ledger.read_text(encoding="utf-8"))
        assert doc["conversion_count"] == 1
        assert doc["conversions"]["x"][0]["to_type"] == "DET"

    def test_missing_file(self, tmp_path):
        assert main(["extract", str(tmp_path / "absent.ctsl")]) == EXIT_INFRA

    def test_malformed_unit(self, write_unit):
        path = write_unit("ref x: variable { NOPE };\n")
        assert main(["extract", path]) == EXIT_INFRA

    def test_directory_as_unit(self, tmp_path):
        assert main(["extract", str(tmp_path)]) == EXIT_INFRA

    def test_non_utf8_unit(self, tmp_path):
        path = tmp_path / "latin1.ctsl"
        path.write_bytes(b"ref x: variable { CLEAR }; # \xff\n")
        assert main(["extract", str(path)]) == EXIT_INFRA


class TestOtherCommands:

    def test_check(self, write_unit, capsys):
        path = write_unit(CLEAN_UNIT + "ref z: other { };\n")
        assert main(["check", path]) == EXIT_OK
        out = capsys.readouterr().out
        assert "OK, 3 reference(s), 1 constraint(s), 1 without candidates" in out

    def test_default_hierarchy(self, capsys):
        assert main(["hierarchy"]) == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "order: RND, AH, MH, DET, OPE, CLEAR"
        assert "subtype: CLEAR <: OPE" in lines
        assert lines[-1] == "baseline: CLEAR"

    def test_unit_hierarchy(self, write_unit, capsys):
        path = write_unit(
            "hierarchy { order HI, LO; subtype LO <: HI; baseline LO; }\n")
        assert main(["hierarchy", path]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == [
            "order: HI, LO", "subtype: LO <: HI", "baseline: LO"]

    def test_no_command(self):
        assert main([]) == EXIT_INFRA

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert "ctsl" in capsys.readouterr().out


class TestLoggingSetup:

    def test_handler_installed_once(self):
        _configure_logging(0)
        _configure_logging(2)
        for name in ("ctsl", "cryptotype_shims"):
            logger = logging.getLogger(name)
            handlers = [h for h in logger.handlers
                        if isinstance(h, CtslLogHandler)]
            assert len(handlers) == 1
            assert logger.level == logging.DEBUG

    def test_env_level_overrides_verbosity(self, monkeypatch):
        monkeypatch.setenv("CTSL_LOG_LEVEL", "error")
        _configure_logging(2)
        assert logging.getLogger("ctsl").level == logging.ERROR
