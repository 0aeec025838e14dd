import pytest

from domainset.services.domain_normalizer import DomainNormalizer


@pytest.fixture(scope="session")
def normalizer():
    # Bundled PSL snapshot only; tests never touch the network.
    return DomainNormalizer()
