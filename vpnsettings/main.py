from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import AppConfig, load_app_config
from .logging_utility import logger
from .settings.exceptions import (
    CommitInProgressError,
    FeatureDisabledError,
    PreconditionViolation,
    StorageError,
)
from .settings.layout import SettingKind
from .settings.manager import SettingsManager
from .settings.models import Choice, Cipher, Digest, Handshake, ThemeCode, VPNType


class DraftUpdate(BaseModel):
    vpn_type: Optional[VPNType] = None
    preferred_port: Optional[int] = None
    cipher: Optional[Cipher] = None
    digest: Optional[Digest] = None
    handshake: Optional[Handshake] = None
    is_persistent_connection: Optional[bool] = None
    mace_enabled: Optional[bool] = None


class CommitRequest(BaseModel):
    choice: Optional[Choice] = None


class ThemeRequest(BaseModel):
    theme: ThemeCode


def _session_view(manager: SettingsManager) -> dict:
    draft = manager.store.draft
    return {
        "active": manager.active.to_dict(),
        "draft": draft.configuration.to_dict() if draft is not None else None,
        "pending_action": manager.pending_action.value,
        "sections": [section.to_dict() for section in manager.sections()],
    }


def create_app(config: Optional[AppConfig] = None, manager: Optional[SettingsManager] = None) -> FastAPI:
    """Build the settings API around a SettingsManager."""
    if manager is None:
        manager = SettingsManager(config or load_app_config())

    app = FastAPI(title="VPN Settings")
    app.state.manager = manager

    @app.get("/settings")
    async def get_settings():
        """Active configuration and theme"""
        return {
            "configuration": manager.active.to_dict(),
            "theme": manager.theme.current_theme_code.value,
        }

    @app.post("/settings/session")
    async def open_session():
        """Start editing a copy of the active configuration"""
        try:
            manager.open_session()
        except PreconditionViolation as e:
            raise HTTPException(status_code=409, detail=str(e))
        return _session_view(manager)

    @app.get("/settings/session")
    async def get_session():
        return _session_view(manager)

    @app.patch("/settings/session")
    async def update_session(update: DraftUpdate):
        """Apply edits to the draft"""
        changes = update.model_dump(exclude_unset=True)
        try:
            manager.update_draft(**changes)
        except PreconditionViolation as e:
            raise HTTPException(status_code=409, detail=str(e))
        except FeatureDisabledError as e:
            raise HTTPException(status_code=403, detail=str(e))
        except ValueError as e:
            logger.warning(f"Rejected settings update {changes}: {str(e)}")
            raise HTTPException(status_code=400, detail=str(e))
        return _session_view(manager)

    @app.post("/settings/session/reset")
    async def reset_session():
        """Reset the draft to defaults, keeping the selected server"""
        try:
            manager.reset_to_defaults()
        except PreconditionViolation as e:
            raise HTTPException(status_code=409, detail=str(e))
        except FeatureDisabledError as e:
            raise HTTPException(status_code=403, detail=str(e))
        except StorageError as e:
            logger.error(f"Error saving theme during reset: {str(e)}")
            raise HTTPException(status_code=500, detail="Settings could not be saved")
        return _session_view(manager)

    @app.delete("/settings/session")
    async def discard_session():
        try:
            manager.discard()
        except PreconditionViolation as e:
            raise HTTPException(status_code=409, detail=str(e))
        return _session_view(manager)

    @app.post("/settings/session/commit")
    async def commit_session(request: Optional[CommitRequest] = None):
        """Commit the draft; `choice` answers the reconnect prompt if one is needed"""
        choice = request.choice if request else None
        try:
            result = await manager.commit(choice)
        except (PreconditionViolation, CommitInProgressError) as e:
            raise HTTPException(status_code=409, detail=str(e))
        except StorageError as e:
            logger.error(f"Error committing settings: {str(e)}")
            raise HTTPException(status_code=500, detail="Settings could not be saved")
        return {**result.to_dict(), **_session_view(manager)}

    @app.get("/settings/options/{setting}")
    async def get_options(setting: SettingKind):
        try:
            return {"setting": setting.value, "options": manager.options(setting)}
        except FeatureDisabledError as e:
            raise HTTPException(status_code=403, detail=str(e))

    @app.put("/settings/theme")
    async def set_theme(request: ThemeRequest):
        """Switch theme immediately"""
        try:
            changed = manager.set_theme(request.theme)
        except StorageError as e:
            logger.error(f"Error saving theme: {str(e)}")
            raise HTTPException(status_code=500, detail="Settings could not be saved")
        return {"theme": manager.theme.current_theme_code.value, "changed": changed}

    @app.get("/connection/status")
    async def connection_status():
        return {"status": manager.connection.status().value}

    @app.get("/content_blocker")
    def content_blocker_state():
        return {"enabled": manager.content_blocker.is_enabled()}

    @app.post("/content_blocker/reload")
    def reload_content_blocker():
        if not manager.reload_content_blocker():
            raise HTTPException(status_code=500, detail="Failed to reload content blocker")
        return {"status": "success"}

    @app.post("/diagnostics/debug_log")
    def debug_log():
        """Submit the tunnel log for support"""
        return manager.submit_debug_log().to_dict()

    @app.get("/diagnostics/resolve")
    def resolve_ads_domain():
        try:
            addresses = manager.resolve_ads_domain()
        except FeatureDisabledError as e:
            raise HTTPException(status_code=403, detail=str(e))
        return {
            "domain": manager.config.diagnostics.ads_domain,
            "addresses": addresses or ["Can't resolve"],
        }

    return app
