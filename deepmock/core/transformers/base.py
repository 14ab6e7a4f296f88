"""Transformer interface and the ordered chain applying transformers."""

from __future__ import annotations

import abc
import logging
from typing import Iterable

from deepmock.core.loader.representation import ModuleRepresentation
from deepmock.errors import TransformationError

logger = logging.getLogger(__name__)


class MockTransformer(abc.ABC):
    """
    Rewrites the working copy of a module before it is defined.

    A transformer may only touch the representation it is given (which is
    a private copy) and returns the representation to hand to the next
    transformer.
    """

    @abc.abstractmethod
    def transform(self, representation: ModuleRepresentation) -> ModuleRepresentation:
        ...

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class TransformerChain:
    """Applies transformers left to right, without reordering or deduplication."""

    def __init__(self, transformers: Iterable[MockTransformer] = ()):
        self.transformers = tuple(transformers)

    def apply(self, representation: ModuleRepresentation) -> ModuleRepresentation:
        for transformer in self.transformers:
            try:
                result = transformer.transform(representation)
            except Exception as err:
                raise TransformationError(
                    f"Transformer {transformer!r} failed on module {representation.name}: {err}"
                ) from err
            if result is None:
                raise TransformationError(
                    f"Transformer {transformer!r} returned no representation for module {representation.name}"
                )
            representation = result
            logger.debug("%r applied to %s", transformer, representation.name)
        return representation

    def __len__(self):
        return len(self.transformers)

    def __iter__(self):
        return iter(self.transformers)
