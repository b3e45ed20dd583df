"""Report contract constants for machine-consumable schemagate reports."""

REPORT_SCHEMA_VERSION = "1"
CANONICALIZATION_POLICY_ID = "schemagate.canonical-json.v1"

REPORT_JSON_FILENAME = "schemagate_report.json"
REPORT_MARKDOWN_FILENAME = "schemagate_report.md"

# Path used on violations that do not belong to an artifact (e.g. gate crashes).
INTERNAL_PATH = "<internal>"
