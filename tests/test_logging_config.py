from __future__ import annotations

import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from daily_updates import logging_config


def test_configure_logging_adds_one_file_handler(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(logging_config, "_LOG_PATH", None)
    root = logging.getLogger()
    before = list(root.handlers)
    target = tmp_path / "logs" / "daily_updates.log"
    try:
        assert logging_config.configure_logging(log_path=target) == target
        assert logging_config.configure_logging(log_path=target) == target
        added = [handler for handler in root.handlers if handler not in before]
        assert len(added) == 1
        assert isinstance(added[0], logging.FileHandler)

        logging.getLogger("daily_updates.test").warning("written to file")
        added[0].flush()
        assert "written to file" in target.read_text(encoding="utf-8")
        assert logging_config.get_log_path() == target
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
