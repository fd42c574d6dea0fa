import json
import logging

from resource_manager.config import ResourceManagerConfig
from resource_manager.logging_config import JsonFormatter, configure_logging


def test_json_formatter_includes_extra_fields():
    formatter = JsonFormatter("resource-manager-service", "dev")
    record = logging.LogRecord("resource_manager.orchestrator", logging.INFO, __file__, 1, "Shutdown done", (), None)
    record.component = "orchestrator"
    record.action = "shutdown"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Shutdown done"
    assert payload["level"] == "info"
    assert payload["service"] == "resource-manager-service"
    assert payload["environment"] == "dev"
    assert payload["component"] == "orchestrator"
    assert payload["action"] == "shutdown"


def test_configure_logging_replaces_its_own_handler():
    config = ResourceManagerConfig(environment="dev", log_level="DEBUG")
    root = logging.getLogger()

    configure_logging(config)
    configure_logging(config)

    ours = [h for h in root.handlers if getattr(h, "_resource_manager", False)]
    assert len(ours) == 1
    assert isinstance(ours[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG

    root.removeHandler(ours[0])
