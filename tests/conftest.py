"""Shared fixtures: a small documentation checkout and an index built from it."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkdocs.index.indexer import IndexBuilder
from sdkdocs.index.search import QueryService
from sdkdocs.index.state import IndexState
from sdkdocs.index.storage import DocStore

REFERENCE_MD = """# @gala-chain/api

## Classes

### TokenBalance

Tracks the balance of a token for an owner.

Extends: `ChainObject`

Implements: `Serializable`, `Comparable`

#### constructor

```ts
new TokenBalance(params?: TokenBalanceParams): TokenBalance
```

#### quantity

The quantity held.

```ts
quantity: BigNumber
```

#### addQuantity

Adds to the balance.

```ts
addQuantity(amount: BigNumber, reason?: string): void
```

- `amount` (BigNumber) - Amount to add

Returns: `void`

### GalaContract

Base contract class.

#### submit

@Submit decorator marks it.

```ts
async submit(ctx: GalaChainContext, dto: SubmitCallDTO): Promise<TokenBalance>
```

Example:
```ts
await contract.submit(ctx, dto);
```
"""

GUIDE_MD = """# Getting Started

Install the CLI with npm.

```bash
npm install -g @gala-chain/cli
```

## Next steps

- Write a contract
- Deploy it

> Tip: use the test network.
"""

README_MD = """# Galachain SDK

Monorepo for the SDK.
"""


@pytest.fixture
def reference_md() -> str:
    return REFERENCE_MD


@pytest.fixture
def guide_md() -> str:
    return GUIDE_MD


@pytest.fixture
def fake_repo(tmp_path: Path) -> Path:
    """Checkout laid out like the SDK repository."""
    repo = tmp_path / "galachain-sdk"
    api_docs = repo / "docs" / "chain-api-docs"
    api_docs.mkdir(parents=True)
    (api_docs / "exports.md").write_text(REFERENCE_MD, encoding="utf-8")
    (repo / "docs" / "getting-started.md").write_text(GUIDE_MD, encoding="utf-8")
    (repo / "README.md").write_text(README_MD, encoding="utf-8")
    return repo


@pytest.fixture
def builder(fake_repo: Path) -> IndexBuilder:
    return IndexBuilder(lambda: fake_repo)


@pytest.fixture
def built_db(tmp_path: Path, builder: IndexBuilder) -> Path:
    db_path = tmp_path / "index" / "sdkdocs.db"
    builder.build(db_path)
    return db_path


@pytest.fixture
def queries(built_db: Path):
    store = DocStore(built_db, readonly=True)
    yield QueryService(store)
    store.close()


@pytest.fixture
def ready_state(built_db: Path, builder: IndexBuilder):
    state = IndexState(built_db, builder)
    assert state.open_existing()
    yield state
    state.close()


@pytest.fixture
def building_state(tmp_path: Path, builder: IndexBuilder) -> IndexState:
    return IndexState(tmp_path / "missing.db", builder)
