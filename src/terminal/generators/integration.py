"""Edge function / integration stub generation."""

from string import Template

from ..extraction import extract_integration_name, extract_integration_type, extract_linked_modules
from ..models import ArtifactType, BuildStep, GeneratedArtifact
from .base import js_string

SCRAPER_TEMPLATE = Template("""// Generated data scraper integration
export async function ${name}() {
  console.log('Running ${name} based on: ${prompt}');

  try {
    const data = await fetchData();
    return { success: true, data };
  } catch (error) {
    console.error('Scraper error:', error);
    return { success: false, error: error.message };
  }
}

async function fetchData() {
  return [];
}""")

SERVICE_TEMPLATE = Template("""// Generated ${kind} integration: ${name}
export async function ${name}() {
  console.log('Running ${name} based on: ${prompt}');

  try {
    const data = null;
    return { success: true, data };
  } catch (error) {
    console.error('Integration error:', error);
    return { success: false, error: error.message };
  }
}""")


def render_integration(name: str, kind: str, prompt: str) -> str:
    if kind == "scraper":
        return SCRAPER_TEMPLATE.substitute(name=name, prompt=js_string(prompt))
    return SERVICE_TEMPLATE.substitute(name=name, kind=kind, prompt=js_string(prompt))


class IntegrationGenerator:
    """Emits an async function stub wrapped in try/catch."""

    def generate(self, request_id: str, prompt: str, step: BuildStep) -> GeneratedArtifact:
        name = extract_integration_name(prompt)
        kind = extract_integration_type(prompt)
        return GeneratedArtifact(
            request_id=request_id,
            artifact_type=ArtifactType.INTEGRATION,
            artifact_name=name,
            file_path=f"src/integrations/{name}.ts",
            generated_code=render_integration(name, kind, prompt),
            linked_modules=extract_linked_modules(prompt),
        )
