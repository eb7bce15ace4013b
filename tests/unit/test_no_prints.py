import ast
import io
import logging
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT_DIR))

import workout_mix.logging_utils as logging_utils


def test_no_print_statements():
    sources = list((ROOT_DIR / "workout_mix").rglob("*.py")) + list((ROOT_DIR / "api").rglob("*.py"))
    offenders = []
    for path in sources:
        tree = ast.parse(path.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.Call):
                func = node.func
                if isinstance(func, ast.Name) and func.id == "print":
                    offenders.append(str(path))
    assert not offenders, f"print() calls remain in: {offenders}"


def test_quiet_suppresses_info(monkeypatch):
    buf = io.StringIO()
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setattr(logging_utils, "_logging_configured", False)
    monkeypatch.setattr(logging_utils.sys, "stdout", buf)
    logging_utils.configure_logging(level="WARNING", console=True, force=True)

    logger = logging.getLogger("quiet_test")
    logger.info("info hidden")
    logger.warning("warn shown")

    output = buf.getvalue()
    assert "info hidden" not in output
    assert "warn shown" in output
