"""
React component generation.

The table a form writes to (or a dashboard reads from) is the lower-cased
component name with the first "form" / "dashboard" removed. That works for the
`<entity>Form` / `<entity>Dashboard` names produced here, but an entity that
itself contains "form" (e.g. `platform_reviewForm`) yields the wrong table.
The component does not check that the table exists.
"""

from string import Template

from ..extraction import (
    extract_component_category,
    extract_component_kind,
    extract_component_name,
    extract_linked_modules,
    humanize,
    strip_first,
)
from ..models import ArtifactType, BuildStep, GeneratedArtifact

FORM_TEMPLATE = Template("""import React, { useState } from 'react';
import { Button } from '@/components/ui/button';
import { Input } from '@/components/ui/input';
import { Textarea } from '@/components/ui/textarea';
import { Card, CardContent, CardHeader, CardTitle } from '@/components/ui/card';
import { supabase } from '@/integrations/supabase/client';
import { useToast } from '@/hooks/use-toast';

const ${name}: React.FC = () => {
  const [formData, setFormData] = useState({
    title: '',
    description: '',
    category: '',
    region: ''
  });
  const [isSubmitting, setIsSubmitting] = useState(false);
  const { toast } = useToast();

  const handleSubmit = async (e: React.FormEvent) => {
    e.preventDefault();
    setIsSubmitting(true);

    try {
      const { error } = await supabase
        .from('${table}')
        .insert(formData);

      if (error) throw error;

      toast({
        title: "Success",
        description: "Your submission has been recorded",
      });

      setFormData({ title: '', description: '', category: '', region: '' });
    } catch (error) {
      toast({
        title: "Error",
        description: "Failed to submit form",
        variant: "destructive"
      });
    } finally {
      setIsSubmitting(false);
    }
  };

  return (
    <Card className="max-w-2xl mx-auto">
      <CardHeader>
        <CardTitle>${title}</CardTitle>
      </CardHeader>
      <CardContent>
        <form onSubmit={handleSubmit} className="space-y-4">
          <Input
            placeholder="Title"
            value={formData.title}
            onChange={(e) => setFormData(prev => ({ ...prev, title: e.target.value }))}
            required
          />
          <Textarea
            placeholder="Description"
            value={formData.description}
            onChange={(e) => setFormData(prev => ({ ...prev, description: e.target.value }))}
            required
          />
          <Input
            placeholder="Category"
            value={formData.category}
            onChange={(e) => setFormData(prev => ({ ...prev, category: e.target.value }))}
            required
          />
          <Input
            placeholder="Region"
            value={formData.region}
            onChange={(e) => setFormData(prev => ({ ...prev, region: e.target.value }))}
          />
          <Button type="submit" disabled={isSubmitting} className="w-full">
            {isSubmitting ? 'Submitting...' : 'Submit'}
          </Button>
        </form>
      </CardContent>
    </Card>
  );
};

export default ${name};""")

DASHBOARD_TEMPLATE = Template("""import React, { useState, useEffect } from 'react';
import { Card, CardContent, CardHeader, CardTitle } from '@/components/ui/card';
import { Badge } from '@/components/ui/badge';
import { supabase } from '@/integrations/supabase/client';

const ${name}: React.FC = () => {
  const [data, setData] = useState([]);
  const [isLoading, setIsLoading] = useState(true);

  useEffect(() => {
    loadData();
  }, []);

  const loadData = async () => {
    try {
      const { data: items, error } = await supabase
        .from('${table}')
        .select('*')
        .order('created_at', { ascending: false });

      if (error) throw error;
      setData(items || []);
    } catch (error) {
      console.error('Error loading data:', error);
    } finally {
      setIsLoading(false);
    }
  };

  if (isLoading) {
    return <div>Loading...</div>;
  }

  return (
    <div className="space-y-6">
      <h1 className="text-3xl font-bold">${title}</h1>

      <div className="grid gap-4 md:grid-cols-2 lg:grid-cols-3">
        {data.map((item: any) => (
          <Card key={item.id}>
            <CardHeader>
              <CardTitle className="text-lg">{item.title || 'Item'}</CardTitle>
            </CardHeader>
            <CardContent>
              <p className="text-sm text-muted-foreground mb-2">
                {item.description || 'No description'}
              </p>
              <div className="flex justify-between items-center">
                <Badge variant="outline">{item.category || 'General'}</Badge>
                <span className="text-xs text-muted-foreground">
                  {new Date(item.created_at).toLocaleDateString()}
                </span>
              </div>
            </CardContent>
          </Card>
        ))}
      </div>

      {data.length === 0 && (
        <div className="text-center text-muted-foreground py-8">
          No data available
        </div>
      )}
    </div>
  );
};

export default ${name};""")

BASIC_TEMPLATE = Template("""import React from 'react';
import { Card, CardContent, CardHeader, CardTitle } from '@/components/ui/card';

interface ${name}Props {
  // Add props as needed
}

const ${name}: React.FC<${name}Props> = () => {
  return (
    <Card>
      <CardHeader>
        <CardTitle>${title}</CardTitle>
      </CardHeader>
      <CardContent>
        <p>Generated component based on: "${prompt}"</p>
      </CardContent>
    </Card>
  );
};

export default ${name};""")


def component_table_name(name: str, kind: str) -> str:
    """Table a form/dashboard component talks to, derived from its name."""
    return strip_first(name.lower(), kind)


def jsx_text(text: str) -> str:
    return text.replace("{", "&#123;").replace("}", "&#125;").replace("<", "&lt;").replace(">", "&gt;")


def render_component(name: str, kind: str, prompt: str) -> str:
    title = humanize(name)
    if kind == "form":
        return FORM_TEMPLATE.substitute(name=name, title=title, table=component_table_name(name, "form"))
    if kind == "dashboard":
        return DASHBOARD_TEMPLATE.substitute(name=name, title=title, table=component_table_name(name, "dashboard"))
    return BASIC_TEMPLATE.substitute(name=name, title=title, prompt=jsx_text(prompt))


class ComponentGenerator:
    """Emits a form, dashboard or placeholder React component."""

    def generate(self, request_id: str, prompt: str, step: BuildStep) -> GeneratedArtifact:
        name = extract_component_name(prompt)
        category = extract_component_category(prompt)
        kind = extract_component_kind(prompt)
        return GeneratedArtifact(
            request_id=request_id,
            artifact_type=ArtifactType.COMPONENT,
            artifact_name=name,
            file_path=f"src/components/{category}/{name}.tsx",
            generated_code=render_component(name, kind, prompt),
            linked_modules=extract_linked_modules(prompt),
        )
