"""Template rendering for email notifications using Jinja2.

Each message kind has three templates in the email_templates package
directory: ``<kind>_subject.j2``, ``<kind>_body.html.j2`` and
``<kind>_body.txt.j2``. Only the HTML body is autoescaped. Undefined
variables raise instead of rendering blank.
"""

import logging
from typing import Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders subject, HTML and plain-text bodies for a message kind.

    Templates are cached by the Jinja2 environment across invocations.
    """

    def __init__(self, template_dir: str = "email_templates"):
        self.env = Environment(
            loader=PackageLoader("skillbridge.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, kind: str, context: Dict) -> Dict[str, str]:
        """Render all templates for ``kind`` with the provided context.

        Returns:
            Dictionary with ``subject`` (single line), ``html_body`` and ``text_body``

        Raises:
            NotificationTemplateError: If a template is missing or rendering fails
        """
        try:
            subject_template = self.env.get_template(f"{kind}_subject.j2")
            html_template = self.env.get_template(f"{kind}_body.html.j2")
            text_template = self.env.get_template(f"{kind}_body.txt.j2")

            subject = subject_template.render(context).strip().replace("\n", " ")
            html_body = html_template.render(context)
            text_body = text_template.render(context)

            logger.debug(f"Rendered {kind} templates")

            return {
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
            }

        except TemplateError as e:
            error_msg = f"Template rendering failed for {kind}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
