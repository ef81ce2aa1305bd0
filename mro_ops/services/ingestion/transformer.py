from typing import Any, Dict, List, Mapping


def transform_rows_to_entities(
    rows: List[Mapping[str, Any]],
    column_mapping: Mapping[str, str],
) -> List[Dict[str, Any]]:
    """Rename row columns to canonical fields, one entity per row.

    Missing, None and blank values are left out rather than written as empty.
    String values are stripped. Row order is preserved.
    """
    entities: List[Dict[str, Any]] = []
    for row in rows:
        entity: Dict[str, Any] = {}
        for source, target in column_mapping.items():
            value = row.get(source)
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
                if not value:
                    continue
            entity[target] = value
        entities.append(entity)
    return entities
