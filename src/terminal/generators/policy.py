"""Row-level security policy generation."""

from typing import Dict, List

from ..extraction import extract_entity_name, extract_target_users
from ..models import ArtifactType, BuildStep, GeneratedArtifact
from ..store import USER_ROLES_TABLE


def _role_check(role: str) -> str:
    return (
        "EXISTS (\n"
        f"      SELECT 1 FROM public.{USER_ROLES_TABLE} \n"
        f"      WHERE user_id = auth.uid() AND role = '{role}'\n"
        "    )"
    )


def public_policies(table_name: str) -> List[Dict[str, str]]:
    return [
        {
            "name": f"{table_name}_public_insert",
            "sql": (
                f'CREATE POLICY "{table_name}_public_insert" ON public.{table_name}\n'
                "  FOR INSERT \n"
                "  TO authenticated\n"
                "  WITH CHECK (auth.uid() = user_id);"
            ),
        },
        {
            "name": f"{table_name}_public_select",
            "sql": (
                f'CREATE POLICY "{table_name}_public_select" ON public.{table_name}\n'
                "  FOR SELECT \n"
                "  TO authenticated\n"
                "  USING (true);"
            ),
        },
    ]


def admin_policies(table_name: str) -> List[Dict[str, str]]:
    return [
        {
            "name": f"{table_name}_admin_all",
            "sql": (
                f'CREATE POLICY "{table_name}_admin_all" ON public.{table_name}\n'
                "  FOR ALL \n"
                "  USING (\n"
                f"    {_role_check('admin')}\n"
                "  );"
            ),
        },
    ]


def read_only_role_policies(table_name: str, role: str) -> List[Dict[str, str]]:
    name = f"{table_name}_{role}_select"
    return [
        {
            "name": name,
            "sql": (
                f'CREATE POLICY "{name}" ON public.{table_name}\n'
                "  FOR SELECT \n"
                "  USING (\n"
                f"    {_role_check(role)}\n"
                "  );"
            ),
        },
    ]


def generate_policies(table_name: str, target_users: List[str]) -> List[Dict[str, str]]:
    policies: List[Dict[str, str]] = []
    if "public" in target_users:
        policies.extend(public_policies(table_name))
    if "admin" in target_users:
        policies.extend(admin_policies(table_name))
    for role in ("minister", "researcher"):
        if role in target_users:
            policies.extend(read_only_role_policies(table_name, role))
    return policies


class PolicyGenerator:
    """Emits CREATE POLICY statements for the roles a prompt mentions."""

    def generate(self, request_id: str, prompt: str, step: BuildStep) -> GeneratedArtifact:
        table_name = extract_entity_name(prompt)
        policies = generate_policies(table_name, extract_target_users(prompt))
        return GeneratedArtifact(
            request_id=request_id,
            artifact_type=ArtifactType.RLS_POLICY,
            artifact_name=f"{table_name}_policies",
            generated_code="\n\n".join(policy["sql"] for policy in policies),
            schema_definition={"policies": policies},
        )
