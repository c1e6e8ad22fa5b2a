"""
Topic elaboration generator.

Walks its own model list (fastest first, then the catalog's elaboration
alternates), one full generation per model, and returns the first result that
validates. Each model's generation still goes through the fallback sweep.
"""

from __future__ import annotations

import structlog

from learnforge import fallbacks
from learnforge.errors import LearnForgeError
from learnforge.generators.base import ContentGenerator
from learnforge.models import ContentKind, TopicElaboration
from learnforge.prompts.templates import ELABORATION_CODE_EXAMPLE_SHAPE, ELABORATION_TEMPLATE
from learnforge.topics import is_code_related_topic
from learnforge.validation import parse_elaboration

logger = structlog.get_logger()


class ElaborationGenerator(ContentGenerator):
    kind = ContentKind.ELABORATION
    shape = "object"

    def model_sequence(self) -> list[str]:
        first = self.catalog.fastest
        return [first] + [m for m in self.catalog.elaboration_chain if m != first]

    def build_prompt(self, full_topic: str, model: str) -> str:
        technical = is_code_related_topic(full_topic)
        rules = []
        if "key points" in full_topic.lower():
            rules.append("This topic is asking for key points, so organize content as concise, actionable insights.")
        if technical:
            rules.append("Since this is a technical topic, include relevant code examples with explanations.")
        return ELABORATION_TEMPLATE.format(
            full_topic=full_topic,
            code_samples=" and code samples" if technical else "",
            extra_rules="\n".join(rules) + "\n" if rules else "",
            code_example=ELABORATION_CODE_EXAMPLE_SHAPE.format() if technical else "null",
            model=model,
        )

    async def generate(self, topic: str, module_name: str = "") -> TopicElaboration:
        if not topic or not topic.strip():
            raise ValueError("Invalid topic provided")
        full_topic = f"{module_name}: {topic}" if module_name else topic

        last_error: Exception = LearnForgeError("no models to try")
        for model in self.model_sequence():
            prompt = self.build_prompt(full_topic, model)
            try:
                content = await self._with_retry(
                    lambda: self._structured(prompt, model, lambda v: parse_elaboration(v, topic, model))
                )
            except Exception as e:
                logger.warning("elaboration_model_failed", model=model, error=str(e)[:200])
                last_error = e
                continue
            logger.info("elaboration_generated", topic=full_topic, model=content.model_used)
            return content
        return self._fallback(fallbacks.elaboration(topic), last_error, topic=full_topic)
