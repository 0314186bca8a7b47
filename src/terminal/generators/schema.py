"""Table schema generation."""

from typing import Any, Dict, List

from ..extraction import KeywordRule, extract_entity_name, extract_linked_modules
from ..models import ArtifactType, BuildStep, GeneratedArtifact

Column = Dict[str, Any]

INDEXED_COLUMNS = ("user_id", "status", "category", "region", "created_at")

# (rule, columns) pairs; matching groups are spliced in before the trailing timestamps.
COLUMN_RULES = (
    (
        KeywordRule(("complaint", "feedback"), "submission"),
        (
            {"name": "title", "type": "TEXT", "nullable": False},
            {"name": "description", "type": "TEXT", "nullable": False},
            {"name": "category", "type": "TEXT", "nullable": False},
            {"name": "status", "type": "TEXT", "default": "'pending'"},
            {"name": "user_id", "type": "UUID", "references": "auth.users(id)"},
        ),
    ),
    (
        KeywordRule(("region", "location"), "location"),
        ({"name": "region", "type": "TEXT"},),
    ),
    (
        KeywordRule(("rating", "score"), "rating"),
        ({"name": "rating", "type": "INTEGER"},),
    ),
)


def generate_columns(prompt: str) -> List[Column]:
    columns: List[Column] = [
        {"name": "id", "type": "UUID", "default": "gen_random_uuid()", "primary_key": True},
        {"name": "created_at", "type": "TIMESTAMP WITH TIME ZONE", "default": "now()"},
        {"name": "updated_at", "type": "TIMESTAMP WITH TIME ZONE", "default": "now()"},
    ]
    for rule, extra in COLUMN_RULES:
        if rule.matches(prompt):
            columns[-2:-2] = [dict(c) for c in extra]
    return columns


def generate_indexes(columns: List[Column]) -> List[Dict[str, str]]:
    return [
        {"name": f"idx_{col['name']}", "column": col["name"], "type": "btree"}
        for col in columns
        if col["name"] in INDEXED_COLUMNS
    ]


def generate_constraints(columns: List[Column]) -> List[Dict[str, str]]:
    return [
        {"type": "foreign_key", "column": col["name"], "references": col["references"]}
        for col in columns
        if col.get("references")
    ]


def column_definition(col: Column) -> str:
    definition = f"  {col['name']} {col['type']}"
    if col.get("primary_key"):
        definition += " PRIMARY KEY"
    if col.get("nullable") is False:
        definition += " NOT NULL"
    if col.get("default"):
        definition += f" DEFAULT {col['default']}"
    if col.get("references"):
        definition += f" REFERENCES {col['references']}"
    return definition


def create_table_sql(schema: Dict[str, Any]) -> str:
    columns = ",\n".join(column_definition(col) for col in schema["columns"])
    return f"CREATE TABLE public.{schema['table_name']} (\n{columns}\n);"


class SchemaGenerator:
    """Emits a CREATE TABLE statement for the prompt's entity."""

    def generate(self, request_id: str, prompt: str, step: BuildStep) -> GeneratedArtifact:
        table_name = extract_entity_name(prompt)
        columns = generate_columns(prompt)
        schema = {
            "table_name": table_name,
            "columns": columns,
            "indexes": generate_indexes(columns),
            "constraints": generate_constraints(columns),
        }
        return GeneratedArtifact(
            request_id=request_id,
            artifact_type=ArtifactType.TABLE_SCHEMA,
            artifact_name=table_name,
            generated_code=create_table_sql(schema),
            schema_definition=schema,
            linked_modules=extract_linked_modules(prompt),
        )
