# tests/test_chain.py
import threading
from dataclasses import replace

import pytest

from starledger.chain.hashchain import HashChain
from starledger.core.errors import ChainCorrupted, PersistenceFailed
from starledger.core.types import Block, GenesisMarker, StarClaim
from starledger.storage import StorageBackend
from starledger.verify.integrity import BrokenLink, TamperedBlock


def make_claim(i: int, address: str = "A1") -> StarClaim:
    return StarClaim(
        address=address,
        message=f"{address}:{1000 + i}:starRegistry",
        signature=f"sig-{i}",
        star={"story": f"star #{i}"},
    )


@pytest.fixture
def chain(clock) -> HashChain:
    c = HashChain(clock=clock)
    c.initialize()
    return c


def build_chain(clock, n: int) -> HashChain:
    c = HashChain(clock=clock)
    c.initialize()
    for i in range(n):
        clock.now += 10
        c.append(make_claim(i))
    return c


def test_uninitialized_chain_is_empty():
    c = HashChain()
    assert c.height() == -1
    assert c.get_by_height(0) is None
    assert c.validate() == []


def test_genesis_invariant(chain):
    assert chain.height() == 0
    genesis = chain.get_by_height(0)
    assert genesis.previous_hash is None
    assert genesis.decode_payload() == GenesisMarker()
    assert genesis.timestamp == 1000
    assert chain.validate() == []


def test_initialize_is_idempotent(chain):
    genesis = chain.get_by_height(0)
    again = chain.initialize()
    assert again == genesis
    assert chain.height() == 0
    assert len(chain) == 1


def test_append_links_hashes(clock):
    c = build_chain(clock, 5)
    blocks = c.blocks()

    assert [b.height for b in blocks] == list(range(6))
    for i in range(1, len(blocks)):
        assert blocks[i].previous_hash == blocks[i - 1].hash
    assert blocks[3].timestamp == 1030
    assert c.validate() == []


def test_append_on_empty_chain_creates_block_zero(clock):
    c = HashChain(clock=clock)
    block = c.append(GenesisMarker())
    assert block.height == 0
    assert block.previous_hash is None


def test_lookups(clock):
    c = build_chain(clock, 3)
    target = c.get_by_height(2)

    assert c.get_by_hash(target.hash) is target
    assert c.get_by_hash("00" * 32) is None
    assert c.get_by_height(3).decode_payload().signature == "sig-2"
    assert c.get_by_height(4) is None
    assert c.get_by_height(-1) is None


def test_blocks_snapshot_not_affected_by_later_appends(chain):
    snapshot = chain.blocks()
    chain.append(make_claim(0))
    assert len(snapshot) == 1
    assert chain.height() == 1


def test_tampered_content_detected(clock):
    blocks = list(build_chain(clock, 4).blocks())
    forged = replace(blocks[2].decode_payload(), star={"story": "HACKED"})
    blocks[2] = replace(blocks[2], payload=Block.seal(forged, None, 0, 0).payload)

    errors = HashChain(blocks).validate()
    assert TamperedBlock(2, "stored hash does not match block contents") in errors
    assert all(e.height == 2 for e in errors)


def test_tampered_hash_only_detected(clock):
    blocks = list(build_chain(clock, 4).blocks())
    blocks[1] = replace(blocks[1], hash="ff" * 32)

    errors = HashChain(blocks).validate()
    assert any(isinstance(e, TamperedBlock) and e.height == 1 for e in errors)
    # the successor still points at the real hash
    assert any(isinstance(e, BrokenLink) and e.height == 2 for e in errors)


def test_broken_link_detected_at_its_height(clock):
    blocks = list(build_chain(clock, 5).blocks())
    blocks[3] = replace(blocks[3], previous_hash="deadbeef" * 8)

    errors = HashChain(blocks).validate()
    assert any(isinstance(e, BrokenLink) and e.height == 3 for e in errors)
    assert {e.height for e in errors} == {3}


def test_genesis_with_predecessor_is_broken(clock):
    genesis = Block.seal(GenesisMarker(), "ab" * 32, 0, 1000)
    errors = HashChain([genesis]).validate()
    assert errors == [BrokenLink(0, "genesis block must not reference a predecessor")]


def test_height_gap_detected(clock):
    blocks = list(build_chain(clock, 3).blocks())
    del blocks[1]
    errors = HashChain(blocks).validate()
    assert {e.category for e in errors} >= {"height", "broken_link"}


def test_corrupted_chain_refuses_append(clock):
    blocks = list(build_chain(clock, 3).blocks())
    blocks[1] = replace(blocks[1], timestamp=1)
    corrupted = HashChain(blocks, clock=clock)

    with pytest.raises(ChainCorrupted) as exc_info:
        corrupted.append(make_claim(99))

    assert any(e.height == 1 for e in exc_info.value.errors)
    assert corrupted.height() == 3
    assert len(corrupted.blocks()) == 4


class FailingStorage(StorageBackend):
    def __init__(self):
        self.appended = []

    def append(self, block):
        if block.height > 0:
            raise OSError("disk full")
        self.appended.append(block)

    def load_blocks(self):
        return list(self.appended)

    def save(self, blocks):
        self.appended = list(blocks)

    def close(self):
        pass


def test_persistence_failure_leaves_chain_unchanged(clock):
    storage = FailingStorage()
    c = HashChain(storage=storage, clock=clock)
    c.initialize()
    assert len(storage.appended) == 1

    with pytest.raises(PersistenceFailed, match="disk full"):
        c.append(make_claim(0))
    assert c.height() == 0
    assert c.validate() == []


def test_concurrent_appends_stay_linked(chain):
    n_threads, per_thread = 8, 25
    start = threading.Barrier(n_threads)

    def worker(t):
        start.wait()
        for i in range(per_thread):
            block = chain.append(make_claim(i, address=f"T{t}"))
            assert chain.get_by_hash(block.hash) == block

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(n_threads)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    blocks = chain.blocks()
    assert chain.height() == n_threads * per_thread
    assert [b.height for b in blocks] == list(range(n_threads * per_thread + 1))
    assert chain.validate() == []
