"""
Text rendering of tool results
"""

import json
from typing import Any, Dict, List


def to_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str, ensure_ascii=False)


def format_record(table: str, record: Dict[str, Any]) -> str:
    return f"Successfully retrieved record from table '{table}':\n\n{to_json(record)}"


def format_query_result(table: str, response: Dict[str, Any]) -> str:
    """Summary line, records as JSON, and a note when more pages exist"""
    records = response.get("value") or []
    total = response.get("@odata.count")

    text = f"Successfully retrieved {len(records)} records from table '{table}'"
    if total is not None:
        text += f" (total available: {total})"
    text += ":\n\n"

    if records:
        text += to_json(records)
    else:
        text += "No records found matching the criteria."

    if response.get("@odata.nextLink"):
        text += (
            "\n\nNote: More records are available. Use skip parameter to retrieve "
            "additional pages."
        )
    return text


def format_table_list(tables: List[str]) -> str:
    bullets = "\n".join(f"• {table}" for table in sorted(tables))
    return f"Successfully retrieved {len(tables)} tables from Dataverse:\n\n{bullets}"


def format_table_metadata(table: str, metadata: Dict[str, Any]) -> str:
    return f"Successfully retrieved metadata for table '{table}':\n\n{to_json(metadata)}"
