import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def bookstore_bed():
    from bookstore.domain import bookstore
    from bookstore.utils.db import drop_db, setup_db

    bed = DomainFixture(bookstore)
    bed.setup()
    setup_db(bookstore)
    yield bed
    drop_db(bookstore)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bookstore_bed):
    from bookstore.publishing import StructlogEventPublisher, use_publisher

    with bookstore_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

        use_publisher(StructlogEventPublisher())
