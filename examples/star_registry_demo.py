# examples/star_registry_demo.py
# Run with: python examples/star_registry_demo.py
#
# In-memory ledger; nothing is written to disk.

from dataclasses import replace

from starledger import HashChain, LedgerService
from starledger.core.errors import VerificationFailed
from starledger.crypto.keys import AddressKeyPair


if __name__ == "__main__":
    service = LedgerService()
    alice = AddressKeyPair.generate()
    mallory = AddressKeyPair.generate()

    # Register a star
    print("\n[Registering star]")
    message = service.request_challenge(alice.address)
    block = service.submit_star(
        alice.address,
        message,
        alice.sign(message),
        {"ra": "16h 29m 1.0s", "dec": "-26° 29' 24.9", "story": "Antares, seen from the roof"},
    )
    print(f"  height {block.height} | {block.hash[:16]}... | prev {block.previous_hash[:16]}...")

    # Someone else signs alice's challenge
    print("\n[Forged signature]")
    message = service.request_challenge(alice.address)
    try:
        service.submit_star(alice.address, message, mallory.sign(message), {"story": "stolen"})
    except VerificationFailed as e:
        print(f"  Rejected: {e.reason}")
    print(f"  Height still {service.get_height()}")

    # Read side
    print("\n[Stars owned by alice]")
    for claim in service.get_stars_by_address(alice.address):
        print(f"  {claim.star['story']}")

    # Tamper detection
    print("\n[Tamper detection]")
    print(f"  Valid ledger issues: {service.validate_ledger()}")
    blocks = list(service.blocks())
    blocks[1] = replace(blocks[1], timestamp=blocks[1].timestamp - 3600)
    for failure in HashChain(blocks).validate():
        print(f"  {failure}")

    print("\n" + "=" * 60)
