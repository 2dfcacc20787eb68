"""Storage helpers for the audio source."""

from db.asset_store import LocalAssetStore, StorageGateway, StorageScope, StoredAsset

__all__ = ["LocalAssetStore", "StorageGateway", "StorageScope", "StoredAsset"]
