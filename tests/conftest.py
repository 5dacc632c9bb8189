from tests.fixtures.storage_fixtures import (  # noqa: F401
    client,
    service,
    settings,
    storage_root,
    store,
)
