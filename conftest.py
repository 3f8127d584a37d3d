import jax
import pytest

from jom.backend import configure_precision

# Fields are double precision unless a test builds float32 arrays explicitly
jax.config.update("jax_enable_x64", True)

@pytest.fixture
def single_precision():
    yield configure_precision("single")
    configure_precision("double")
