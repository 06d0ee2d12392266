"""
Capability Mint Authority - Mint Authorization Engine

This module validates mint requests with the ordered rule chain and, once a
request has passed every rule, applies it: the supply counter moves up by
exactly one, the asset record is created and handed to its receiver, and for
paid mints the supplied coin is routed through the PaymentRouter.

No state is touched before the whole chain has passed.
"""

import logging
from typing import Any, Dict, Optional, Union

from nft.metadata import build_asset_metadata, normalize_attributes
from registry.events import EventEmitter, EventType
from registry.schema import AssetMetadata, AssetRecord, CollectionConfiguration, utc_now
from registry.storage import ObjectStore
from validator.core import MintContext, MintValidator

from .payment import PaymentReceipt, PaymentRouter


BytesLike = Union[bytes, str, None]


def _salt_bytes(salt: BytesLike) -> Optional[bytes]:
    if isinstance(salt, str):
        return salt.encode('utf-8')
    return salt


def _signature_bytes(signature: BytesLike) -> Optional[bytes]:
    if isinstance(signature, str):
        signature = signature[2:] if signature.startswith('0x') else signature
        try:
            return bytes.fromhex(signature)
        except ValueError:
            # Undecodable signatures fail verification like any other bad one
            return signature.encode('utf-8')
    return signature


class MintAuthorizationEngine:
    """Validate and apply unpaid and paid mints."""

    def __init__(
        self,
        store: ObjectStore,
        validator: MintValidator,
        router: PaymentRouter,
        events: EventEmitter,
    ):
        self.store = store
        self.validator = validator
        self.router = router
        self.events = events
        self.logger = logging.getLogger(__name__)

        self.stats = {
            "mints": 0,
            "paid_mints": 0,
            "value_routed": 0,
        }

    def mint(
        self,
        ctx,
        config_id: str,
        collection_id: str,
        mint_cap_id: Optional[str],
        receiver: str,
        metadata: Union[AssetMetadata, Dict[str, Any]],
        attributes=None,
        salt: BytesLike = None,
        signature: BytesLike = None,
    ) -> AssetRecord:
        """Mint one unit of a collection that does not charge for mints."""
        config = self.store.get(config_id, CollectionConfiguration)
        context = MintContext(
            tx=ctx,
            config=config,
            collection_id=collection_id,
            receiver=receiver,
            paid=False,
            mint_cap_id=mint_cap_id,
            salt=_salt_bytes(salt),
            signature=_signature_bytes(signature),
        )
        self.validator.validate(context)
        return self._apply(ctx, context, metadata, attributes)

    def mint_with_payment(
        self,
        ctx,
        config_id: str,
        collection_id: str,
        mint_cap_id: Optional[str],
        receiver: str,
        metadata: Union[AssetMetadata, Dict[str, Any]],
        attributes,
        payment_coin_id: str,
        salt: BytesLike = None,
        signature: BytesLike = None,
    ) -> AssetRecord:
        """Mint one unit against payment taken from ``payment_coin_id``."""
        config = self.store.get(config_id, CollectionConfiguration)
        context = MintContext(
            tx=ctx,
            config=config,
            collection_id=collection_id,
            receiver=receiver,
            paid=True,
            mint_cap_id=mint_cap_id,
            salt=_salt_bytes(salt),
            signature=_signature_bytes(signature),
            payment_coin_id=payment_coin_id,
        )
        self.validator.validate(context)
        return self._apply(ctx, context, metadata, attributes, payment_coin_id)

    def _apply(
        self,
        ctx,
        context: MintContext,
        metadata,
        attributes,
        payment_coin_id: Optional[str] = None,
    ) -> AssetRecord:
        config = context.config
        asset_metadata = build_asset_metadata(metadata)
        asset_attributes = normalize_attributes(attributes)

        serial = config.current_supply + 1
        self.store.update(config.model_copy(update={
            'current_supply': serial,
            'updated_at': utc_now(),
        }))

        asset = AssetRecord(
            id=ctx.fresh_id(),
            collection_id=config.collection_id,
            name=asset_metadata.name,
            description=asset_metadata.description,
            media_url=asset_metadata.media_url,
            attributes=asset_attributes,
            serial=serial,
            minted_by=ctx.sender,
        )
        self.store.add(asset, ctx.sender)
        self.store.transfer(asset.id, context.receiver)

        receipt: Optional[PaymentReceipt] = None
        if context.paid:
            receipt = self.router.route(ctx, payment_coin_id, config)
            self.stats["paid_mints"] += 1
            self.stats["value_routed"] += receipt.payment_amount
        self.stats["mints"] += 1

        self.events.emit(
            EventType.ASSET_MINTED, ctx,
            collection_id=config.collection_id,
            config_id=config.id,
            asset_id=asset.id,
            receiver=context.receiver,
            serial=serial,
            mint_cap_id=context.mint_cap_id,
            payment_applied=receipt is not None,
            payment_amount=receipt.payment_amount if receipt else 0,
            payment_coin_id=receipt.payment_coin_id if receipt else None,
            commission_applied=receipt.commission_applied if receipt else False,
            commission_amount=receipt.commission_amount if receipt else 0,
            commission_coin_id=receipt.commission_coin_id if receipt else None,
            change_coin_id=receipt.change_coin_id if receipt else None,
        )

        self.logger.info(
            f"Minted {asset.id} #{serial} of {config.collection_id} to {context.receiver}"
        )
        return asset

    def get_statistics(self) -> Dict[str, Any]:
        return {**self.stats, "validator": self.validator.get_statistics()}
