"""
Encoding and decoding contexts.

``MessageFactory`` creates wire messages for the encoders of generated
classes. ``WireContext`` adds a table of converters for external messages and
external user types, keyed by type token. ``DecoderRegistry`` maps the type
tokens of generated concrete messages to their decode functions and performs
the polymorphic dispatch on the ordinal-0 type header.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..logging_config import get_logger
from .errors import ConverterError
from .message import HEADER_ORDINAL
from .taxonomy import Taxonomy
from .wire import WireField, WireMessage, WireType

logger = get_logger(__name__)


class MessageFactory:
    """Creates wire messages, optionally bound to a taxonomy."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy

    def new_message(self) -> WireMessage:
        return WireMessage(taxonomy=self.taxonomy)


@dataclass(frozen=True)
class Converter:
    """Encode/decode pair for one external type token.

    ``encode(context, value)`` returns the wire value; ``decode(context,
    wire_value)`` rebuilds the object. ``python_type`` lets the context find
    type tokens for class headers from an object's class.
    """

    encode: Callable[["WireContext", Any], Any]
    decode: Callable[["WireContext", Any], Any]
    wire_type: WireType = WireType.SUB_MESSAGE
    python_type: Optional[type] = None


class WireContext(MessageFactory):
    """Serializer and deserializer context for messages with external types."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        super().__init__(taxonomy)
        self._converters: Dict[str, Converter] = {}
        self._tokens_by_type: Dict[type, str] = {}

    def register_converter(self, type_token: str, converter: Converter) -> None:
        self._converters[type_token] = converter
        if converter.python_type is not None:
            self._tokens_by_type[converter.python_type] = type_token
        logger.debug("Registered converter for %s", type_token)

    def converter(self, type_token: str) -> Converter:
        try:
            return self._converters[type_token]
        except KeyError:
            raise ConverterError(type_token) from None

    def has_converter(self, type_token: str) -> bool:
        return type_token in self._converters

    def _header_tokens(self, value: Any, type_token: str) -> List[str]:
        tokens = []
        for klass in type(value).__mro__:
            token = self._tokens_by_type.get(klass)
            if token is None:
                continue
            tokens.append(token)
            if token == type_token:
                return tokens
        if type_token not in tokens:
            tokens.append(type_token)
        return tokens

    def add_to_message(
        self,
        msg: WireMessage,
        name: Optional[str],
        ordinal: Optional[int],
        value: Any,
        type_token: str,
    ) -> None:
        """Encode ``value`` with the converter for ``type_token`` and add it."""
        converter = self.converter(type_token)
        msg.add(name, ordinal, converter.encode(self, value), converter.wire_type)

    def add_to_message_with_class_headers(
        self,
        msg: WireMessage,
        name: Optional[str],
        ordinal: Optional[int],
        value: Any,
        type_token: str,
    ) -> None:
        """Encode an external message as a sub-message carrying a type header."""
        encoded = self.converter(type_token).encode(self, value)
        sub_msg = self.new_message()
        for token in self._header_tokens(value, type_token):
            sub_msg.add(None, HEADER_ORDINAL, token, WireType.STRING)
        for field in encoded:
            sub_msg.add_field(field)
        msg.add(name, ordinal, sub_msg, WireType.SUB_MESSAGE)

    def field_value_to_object(self, type_token: str, field: WireField) -> Any:
        """Decode a field holding an external type.

        Sub-messages carrying a type header are offered to the converters of
        their more derived types first; a failing candidate is skipped.
        """
        value = field.value
        if isinstance(value, WireMessage):
            for header in value.get_all_by_ordinal(HEADER_ORDINAL):
                candidate = header.value
                if candidate == type_token:
                    break
                if candidate not in self._converters:
                    continue
                try:
                    return self._converters[candidate].decode(self, value)
                except Exception as e:
                    logger.debug("Converter for %s rejected message: %s", candidate, e)
        return self.converter(type_token).decode(self, value)


def add_class_headers(msg: WireMessage, value: Any, static_class: type) -> WireMessage:
    """Write the ordinal-0 type header for ``value`` into ``msg``.

    Type tokens are listed from the most derived class of ``value`` up to and
    including ``static_class``.
    """
    for klass in type(value).__mro__:
        token = klass.__dict__.get("TYPE_TOKEN")
        if token is not None:
            msg.add(None, HEADER_ORDINAL, token, WireType.STRING)
        if klass is static_class:
            break
    return msg


@dataclass(frozen=True)
class _Decoder:
    decode: Callable[..., Any]
    with_context: bool


class DecoderRegistry:
    """Type token to decode function table for polymorphic decoding."""

    def __init__(self):
        self._decoders: Dict[str, _Decoder] = {}

    def register(
        self, type_token: str, decode: Callable[..., Any], with_context: bool = False
    ) -> None:
        self._decoders[type_token] = _Decoder(decode, with_context)

    def update(self, other: "DecoderRegistry") -> None:
        self._decoders.update(other._decoders)

    def __contains__(self, type_token: str) -> bool:
        return type_token in self._decoders

    def __len__(self) -> int:
        return len(self._decoders)

    def decode(self, type_token: str, fudge_msg: WireMessage, deserializer=None) -> Any:
        decoder = self._decoders[type_token]
        if decoder.with_context:
            return decoder.decode(deserializer, fudge_msg)
        return decoder.decode(fudge_msg)

    def dispatch(
        self, fudge_msg: WireMessage, static_class: type, deserializer=None
    ) -> Optional[Any]:
        """Decode ``fudge_msg`` as the most derived type named in its header.

        Candidates are tried in header order, stopping at the token of
        ``static_class``. A candidate that is unknown, fails to decode or
        does not yield a ``static_class`` instance is skipped.

        Returns:
            The decoded object, or None when no candidate succeeded.
        """
        static_token = static_class.TYPE_TOKEN
        for header in fudge_msg.get_all_by_ordinal(HEADER_ORDINAL):
            candidate = header.value
            if candidate == static_token:
                break
            if candidate not in self._decoders:
                continue
            try:
                obj = self.decode(candidate, fudge_msg, deserializer)
            except Exception as e:
                logger.debug("Candidate %s failed to decode: %s", candidate, e)
                continue
            if isinstance(obj, static_class):
                return obj
            logger.debug("Candidate %s is not a %s", candidate, static_class.__name__)
        return None
