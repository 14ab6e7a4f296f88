from deepmock.config import DeepMockConfig
from deepmock.core.concrete_class_generator import ConcreteClassGenerator
from deepmock.core.default_field_value_generator import (
    DefaultFieldValueGenerator,
    fill_with_default_values,
)
from deepmock.core.invocationcontrol import MethodInvocationControl
from deepmock.core.loader.mock_loader import MODIFY_ALL_MODULES, MockLoader
from deepmock.core.mock_repository import new_mock_instance
from deepmock.core.proxy import new_proxy_instance
from deepmock.core.type_utils import get_default_value
from deepmock.version import VERSION as __version__
