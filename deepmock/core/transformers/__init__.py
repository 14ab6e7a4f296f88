from deepmock.core.transformers.base import MockTransformer, TransformerChain
from deepmock.core.transformers.main_transformer import (
    MainMockTransformer,
    RemoveFinalTransformer,
    default_transformers,
)
