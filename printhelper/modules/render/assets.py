"""
Asset resolver - turns reference-token field values into inline data.

Reference tokens are posted to the backing asset service, which answers with
the payload (typically a data: URI) as the response body.
"""

import asyncio
from collections.abc import Mapping

import httpx

from printhelper.shared.errors import AssetResolutionError
from printhelper.shared.logging import get_logger

from .schemas import ReferenceValue, ResolvedAsset, classify_field

logger = get_logger(__name__)

ASSET_ENDPOINT = "/track/mgt?page=displayS3Data&pageName=formDataDisplay"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


class AssetResolver:
    """Fetch binary payloads for reference fields, concurrently and once."""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def endpoint_for(domain_name: str) -> str:
        return f"{domain_name.rstrip('/')}{ASSET_ENDPOINT}"

    async def resolve(
        self,
        fields: Mapping[str, str | bool | None],
        domain_name: str | None,
    ) -> dict[str, ResolvedAsset]:
        """
        Resolve every reference field.

        Only fields whose value is a reference token appear in the result.
        A failed fetch yields ResolvedAsset(data=None); it never raises.
        """
        references = {
            name: value.url
            for name, raw in fields.items()
            if isinstance(value := classify_field(raw), ReferenceValue)
        }
        if not references:
            return {}

        if not domain_name:
            logger.warning(
                f"{len(references)} reference field(s) but no domainName; "
                "assets will render as missing"
            )
            return {name: ResolvedAsset(name, None) for name in references}

        endpoint = self.endpoint_for(domain_name)
        logger.info(f"Resolving {len(references)} asset(s) via {endpoint}")

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            results = await asyncio.gather(
                *(
                    self._fetch_one(client, endpoint, name, token)
                    for name, token in references.items()
                )
            )

        return {asset.field_name: asset for asset in results}

    async def _fetch_one(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        field_name: str,
        token: str,
    ) -> ResolvedAsset:
        try:
            return ResolvedAsset(field_name, await self._fetch(client, endpoint, token))
        except AssetResolutionError as e:
            logger.warning(f"Binary fetch failed for '{field_name}' (token {e.details.get('token')}): {e}")
            return ResolvedAsset(field_name, None)

    async def _fetch(self, client: httpx.AsyncClient, endpoint: str, token: str) -> str:
        try:
            response = await client.post(
                endpoint,
                data={"txnID": token},
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            raise AssetResolutionError(
                f"HTTP {e.response.status_code} from asset service",
                details={"token": token},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeDecodeError) as e:
            raise AssetResolutionError(f"Request failed: {e}", details={"token": token}) from e
