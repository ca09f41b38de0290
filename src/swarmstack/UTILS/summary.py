"""
Rendering of the post-install summary of service URLs.
"""
from typing import List, Tuple
from jinja2 import Template

# (label, subdomain prefix)
SUMMARY_ENTRIES: Tuple[Tuple[str, str], ...] = (
    ("Portainer", "portainerapp"),
    ("n8n", "n8napp"),
    ("n8n webhook", "n8nwebhookapp"),
    ("Chatwoot", "chatwootapp"),
    ("Evolution", "evolutionapiapp"),
    ("MinIO S3", "miniobackapp"),
    ("MinIO console", "miniofrontapp"),
    ("RabbitMQ", "rabbitmqapp"),
)

SUMMARY_TEMPLATE = Template(
    "{% for label, url in entries %}  {{ '%-14s' | format(label + ':') }} {{ url }}\n{% endfor %}"
)


def service_urls(domain: str) -> List[Tuple[str, str]]:
    """
    Returns (label, url) for every public service under the domain.
    """
    return [(label, f"https://{prefix}.{domain}") for label, prefix in SUMMARY_ENTRIES]


def render_summary(domain: str) -> str:
    """
    Renders the summary block printed at the end of a successful run.
    """
    return SUMMARY_TEMPLATE.render(entries=service_urls(domain))
