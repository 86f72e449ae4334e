"""
Per-message aggregation of the generator decisions backends render.
"""

from dataclasses import dataclass
from typing import Dict, List

from ...logging_config import get_logger
from .config import GeneratorConfig
from .constructors import ConstructorPlan, plan_constructors
from .schema import MessageDefinition, SchemaModel
from .valuesem import ValueSemanticsPlan, plan_value_semantics
from .wirecodec import MessageCodecPlan, plan_message_codec

logger = get_logger(__name__)


@dataclass
class MessagePlan:
    message: MessageDefinition
    constructors: ConstructorPlan
    codec: MessageCodecPlan
    value_semantics: ValueSemanticsPlan

    @property
    def name(self) -> str:
        return self.message.name


def plan_message(message: MessageDefinition, config: GeneratorConfig) -> MessagePlan:
    """Run the constructor, codec and value-semantics planners on ``message``."""
    plan = MessagePlan(
        message=message,
        constructors=plan_constructors(message, config),
        codec=plan_message_codec(message, config),
        value_semantics=plan_value_semantics(message),
    )
    logger.debug(
        "Planned %s: %s shape, %s context",
        message.identifier,
        plan.constructors.shape.value,
        "with" if plan.constructors.with_context else "without",
    )
    return plan


def plan_model(model: SchemaModel, config: GeneratorConfig) -> Dict[str, MessagePlan]:
    """Plan every non-external message that is a compilation target."""
    plans: Dict[str, MessagePlan] = {}
    for definition in model.compilation_targets():
        if isinstance(definition, MessageDefinition) and not definition.external:
            plans[definition.identifier] = plan_message(definition, config)
    return plans


def base_first(messages: List[MessageDefinition]) -> List[MessageDefinition]:
    """Order messages so every base precedes the messages extending it."""
    ordered: List[MessageDefinition] = []
    placed = set()
    members = {id(m) for m in messages}

    def place(message: MessageDefinition) -> None:
        if id(message) in placed:
            return
        if message.extends is not None and id(message.extends) in members:
            place(message.extends)
        placed.add(id(message))
        ordered.append(message)

    for message in messages:
        place(message)
    return ordered
