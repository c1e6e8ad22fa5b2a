"""
Module content generator: titled sections of factual teaching material.
Technical topics get a code example per section in a topic-appropriate language.
"""

from __future__ import annotations

import structlog

from learnforge import fallbacks
from learnforge.generators.base import ContentGenerator
from learnforge.models import Complexity, ContentKind, ModuleContent
from learnforge.prompts.templates import MODULE_CODE_EXAMPLE_SHAPE, MODULE_CONTENT_TEMPLATE
from learnforge.topics import appropriate_language, is_code_related_topic
from learnforge.validation import parse_module_content

logger = structlog.get_logger()


class ModuleContentGenerator(ContentGenerator):
    """Generates the body of one learning module."""

    kind = ContentKind.MODULE_CONTENT
    shape = "object"

    def build_prompt(self, module_name: str, detailed: bool) -> str:
        technical = is_code_related_topic(module_name)
        code_example = (
            MODULE_CODE_EXAMPLE_SHAPE.format(language=appropriate_language(module_name)) if technical else "null"
        )
        return MODULE_CONTENT_TEMPLATE.format(
            module_name=module_name,
            content_type_label="Technical/Programming" if technical else "General Education",
            content_type="technical" if technical else "general",
            level="Advanced" if detailed else "Basic",
            code_rule="- Include code that follows standard conventions and works correctly" if technical else "",
            code_example=code_example,
            section_count=4 if detailed else 3,
        )

    async def generate(self, module_name: str, detailed: bool = False) -> ModuleContent:
        if not module_name or not module_name.strip():
            raise ValueError("Invalid module name provided")

        technical = is_code_related_topic(module_name)
        model = self.catalog.select_model(
            "content-generation",
            "technical" if technical else "general",
            Complexity.HIGH if detailed else Complexity.MEDIUM,
        )
        prompt = self.build_prompt(module_name, detailed)

        try:
            content = await self._with_retry(lambda: self._structured(prompt, model, parse_module_content))
        except Exception as e:
            return self._fallback(fallbacks.module_content(module_name, detailed), e, module=module_name)
        logger.info("module_content_generated", module=module_name, sections=len(content.sections))
        return content
