"""
Blob Locator Resolver.

Level images are stored by content id (IPFS CID). The engine only ever holds
the locator; this turns it into a fetchable gateway URL.
"""


class BlobLocatorResolver:

    def __init__(self, gateway_url: str):
        self.gateway_url = gateway_url.rstrip('/')

    def resolve(self, locator: str) -> str:
        """
        Args:
            locator: bare CID, ipfs://CID[/path], or an http(s) URL

        Returns:
            Fetchable URL
        """
        if not locator:
            return ''
        if locator.startswith(('http://', 'https://')):
            return locator
        if locator.startswith('ipfs://'):
            locator = locator[len('ipfs://'):]
            if locator.startswith('ipfs/'):
                locator = locator[len('ipfs/'):]
        return f'{self.gateway_url}/ipfs/{locator}'
