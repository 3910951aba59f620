"""Command line interface for checking chain API connectivity"""
from . import (
    getBlockchainStatus, getAssetsByIssuer, getNFTsForCollection, eth_getBlockByNumber,
    ChainAPIError, NodeConnectionError, NodeApplicationError
)
from config import settings_conf

def test_rpc():
    """Query each upstream once and report what came back"""
    try:
        print("\nTesting Ardor node:")
        print("-" * 50)

        print("1. Testing getBlockchainStatus:")
        status = getBlockchainStatus()
        print(f"  Success! Height: {status.get('numberOfBlocks')}, version: {status.get('version')}")

        print("\n2. Testing getAssetsByIssuer for the regular cards issuer:")
        assets = getAssetsByIssuer(account=settings_conf['regular_cards_issuer'])
        groups = assets.get('assets', [])
        count = sum(len(group) if isinstance(group, list) else 1 for group in groups)
        print(f"  Success! {count} assets issued")

        print("\nTesting error scenarios:")
        print("-" * 50)

        print("\n3. Testing getAssetsByIssuer with an invalid account:")
        try:
            getAssetsByIssuer(account='not-an-account')
            print("  Error: Should have raised an exception!")
        except NodeApplicationError as e:
            print(f"  Success! Got expected error: {e}")

    except NodeConnectionError as e:
        print("\nFailed to connect to Ardor node:")
        print(f"  {str(e)}")
        print("\nPlease check node_url and api_path in settings.conf")

    except ChainAPIError as e:
        print(f"\nArdor Error [{e.code}] in {e.method}:")
        print(f"  {str(e)}")

    try:
        print("\nTesting Alchemy (Polygon):")
        print("-" * 50)

        print("4. Testing eth_getBlockByNumber:")
        block = eth_getBlockByNumber('latest', False)
        print(f"  Success! Latest block: {int(block['number'], 16)}")

        print("\n5. Testing getNFTsForCollection:")
        collection = getNFTsForCollection(withMetadata=False)
        print(f"  Success! Got {len(collection.get('nfts', []))} tokens in the first page")

    except NodeConnectionError as e:
        print("\nFailed to connect to Alchemy:")
        print(f"  {str(e)}")
        print("\nPlease check alchemy_url and alchemy_api_key in settings.conf")

    except ChainAPIError as e:
        print(f"\nAlchemy Error [{e.code}] in {e.method}:")
        print(f"  {str(e)}")

    except Exception as e:
        print(f"\nUnexpected error: {str(e)}")

if __name__ == "__main__":
    test_rpc()
