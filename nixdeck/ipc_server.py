"""
IPC Server for NixDeck

JSON-RPC server exposing every engine operation as one method. Requests
and responses are newline-delimited JSON over a Unix socket. Engine and
tool calls block, so handlers run them in worker threads.
"""

import asyncio
import json
import logging
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from .errors import (
    ErrorCode,
    NixDeckError,
    error_response,
    validate_params,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


class IPCServer:
    """JSON-RPC IPC server for configuration management."""

    def __init__(self, daemon, socket_path: Optional[Path] = None):
        """
        Initialize IPC server.

        Args:
            daemon: NixDeckDaemon instance owning the managers
            socket_path: Unix socket path (defaults to the daemon settings)
        """
        self.daemon = daemon
        self.socket_path = socket_path or daemon.settings.ipc_socket
        self.server: Optional[asyncio.AbstractServer] = None
        self.clients = set()

        self.handlers: Dict[str, Handler] = {
            "ping": self._handle_ping,
            # Snapshots
            "snapshot_create": self._handle_snapshot_create,
            "snapshot_list": self._handle_snapshot_list,
            "snapshot_get": self._handle_snapshot_get,
            "snapshot_restore": self._handle_snapshot_restore,
            "snapshot_delete": self._handle_snapshot_delete,
            # Containers
            "container_create": self._handle_container_create,
            "container_load": self._handle_container_load,
            "container_list": self._handle_container_list,
            "container_get": self._handle_container_get,
            "container_delete": self._handle_container_delete,
            "container_export": self._handle_container_export,
            # Single-component editor
            "rice_get": self._handle_rice_get,
            "rice_apply": self._handle_rice_apply,
            "rice_preview": self._handle_rice_preview,
            # Themes
            "theme_list": self._handle_theme_list,
            "theme_load": self._handle_theme_load,
            "theme_save": self._handle_theme_save,
            # Loadouts and assistant stub
            "loadout_list": self._handle_loadout_list,
            "loadout_load": self._handle_loadout_load,
            "loadout_save": self._handle_loadout_save,
            "ai_send": self._handle_ai_send,
            # User services
            "service_list": self._handle_service_list,
            "service_create": self._handle_service_create,
            "service_enable": partial(self._handle_service_control, "enable"),
            "service_disable": partial(self._handle_service_control, "disable"),
            "service_start": partial(self._handle_service_control, "start"),
            "service_stop": partial(self._handle_service_control, "stop"),
            "service_status": self._handle_service_status,
            # Cron
            "cron_list": self._handle_cron_list,
            "cron_create": self._handle_cron_create,
            "cron_delete": self._handle_cron_delete,
            # Host
            "system_info": self._handle_system_info,
        }

    async def start(self):
        """Start IPC server."""
        # Ensure socket directory exists
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        # Remove stale socket
        if self.socket_path.exists():
            self.socket_path.unlink()

        self.server = await asyncio.start_unix_server(
            self._handle_client,
            path=str(self.socket_path)
        )

        logger.info(f"IPC server listening on {self.socket_path}")

    async def stop(self):
        """Stop IPC server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()

        if self.socket_path.exists():
            self.socket_path.unlink()

        logger.info("IPC server stopped")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """
        Handle client connection.

        Args:
            reader: Stream reader
            writer: Stream writer
        """
        logger.debug("Client connected")
        self.clients.add(writer)

        try:
            while True:
                data = await reader.readline()
                if not data:
                    break

                try:
                    request = json.loads(data.decode())
                except (UnicodeDecodeError, json.JSONDecodeError) as e:
                    response = error_response(NixDeckError(
                        code=ErrorCode.PARSE_ERROR,
                        message=f"Invalid JSON: {e}"
                    ))
                else:
                    response = await self._handle_request(request)

                writer.write((json.dumps(response) + "\n").encode())
                await writer.drain()

        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.warning(f"Client connection lost: {e}")
        finally:
            self.clients.discard(writer)
            writer.close()
            await writer.wait_closed()
            logger.debug("Client disconnected")

    async def _handle_request(self, request: Any) -> Dict[str, Any]:
        """
        Route a JSON-RPC request to its handler.

        Engine errors become error responses carrying the raw message;
        anything unexpected is logged with its traceback.

        Args:
            request: Decoded JSON-RPC request

        Returns:
            JSON-RPC response dict
        """
        if not isinstance(request, dict):
            return error_response(NixDeckError(
                code=ErrorCode.INVALID_REQUEST,
                message="Request must be a JSON object"
            ))

        method = request.get("method")
        params = request.get("params") or {}
        request_id = request.get("id")

        logger.debug(f"Received request: {method}")

        try:
            if not method:
                raise NixDeckError(
                    code=ErrorCode.INVALID_REQUEST,
                    message="Missing 'method' field in request",
                    suggestion="Provide 'method' field in JSON-RPC request"
                )

            handler = self.handlers.get(method)
            if handler is None:
                raise NixDeckError(
                    code=ErrorCode.METHOD_NOT_FOUND,
                    message=f"Method not found: {method}",
                    suggestion=f"Available methods: {', '.join(sorted(self.handlers))}"
                )

            result = await handler(params)

            return {
                "jsonrpc": "2.0",
                "result": result,
                "id": request_id
            }

        except NixDeckError as e:
            logger.warning(f"{method} failed: {e.message}")
            return error_response(e, request_id)

        except Exception as e:
            logger.exception(f"Unexpected error handling {method}")
            return error_response(e, request_id)

    async def _handle_ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"status": "ok", "daemon": "nixdeck"}

    # Snapshots

    async def _handle_snapshot_create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        metadata = await asyncio.to_thread(self.daemon.snapshots.create, params["name"])
        return metadata.model_dump(mode="json")

    async def _handle_snapshot_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"snapshots": await asyncio.to_thread(self.daemon.snapshots.list)}

    async def _handle_snapshot_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        metadata = await asyncio.to_thread(self.daemon.snapshots.get, params["name"])
        return metadata.model_dump(mode="json")

    async def _handle_snapshot_restore(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        return {"restored": await asyncio.to_thread(self.daemon.snapshots.restore, params["name"])}

    async def _handle_snapshot_delete(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        await asyncio.to_thread(self.daemon.snapshots.delete, params["name"])
        return {"success": True}

    # Containers

    async def _handle_container_create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        metadata = await asyncio.to_thread(self.daemon.containers.create, params["name"])
        return metadata.model_dump(mode="json")

    async def _handle_container_load(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        return {"restored": await asyncio.to_thread(self.daemon.containers.load, params["name"])}

    async def _handle_container_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"containers": await asyncio.to_thread(self.daemon.containers.list)}

    async def _handle_container_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        metadata = await asyncio.to_thread(self.daemon.containers.get, params["name"])
        return metadata.model_dump(mode="json")

    async def _handle_container_delete(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        await asyncio.to_thread(self.daemon.containers.delete, params["name"])
        return {"success": True}

    async def _handle_container_export(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name", "path"], [])
        archive = await asyncio.to_thread(self.daemon.containers.export, params["name"], Path(params["path"]))
        return {"archive": str(archive)}

    # Single-component editor

    async def _handle_rice_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["component"], [])
        return {"content": await asyncio.to_thread(self.daemon.editor.get, params["component"])}

    async def _handle_rice_apply(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["component", "config"], [])
        backup = await asyncio.to_thread(self.daemon.editor.apply, params["component"], params["config"])
        return {"backup": str(backup)}

    async def _handle_rice_preview(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["component", "config"], [])
        return {"preview": await asyncio.to_thread(self.daemon.editor.preview, params["component"], params["config"])}

    # Themes

    async def _handle_theme_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"themes": await asyncio.to_thread(self.daemon.themes.list)}

    async def _handle_theme_load(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        return {"content": await asyncio.to_thread(self.daemon.themes.load, params["name"])}

    async def _handle_theme_save(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name", "content"], [])
        await asyncio.to_thread(self.daemon.themes.save, params["name"], params["content"])
        return {"success": True}

    # Loadouts

    async def _handle_loadout_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"loadouts": await asyncio.to_thread(self.daemon.loadouts.list)}

    async def _handle_loadout_load(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        return {"content": await asyncio.to_thread(self.daemon.loadouts.load, params["name"])}

    async def _handle_loadout_save(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name", "config"], [])
        await asyncio.to_thread(self.daemon.loadouts.save, params["name"], params["config"])
        return {"success": True}

    async def _handle_ai_send(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["message", "loadout"], [])
        return {"reply": self.daemon.loadouts.send_message(params["message"], params["loadout"])}

    # User services

    async def _handle_service_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"services": await asyncio.to_thread(self.daemon.services.list)}

    async def _handle_service_create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name", "content"], [])
        unit_path = await asyncio.to_thread(self.daemon.services.create, params["name"], params["content"])
        return {"unit": str(unit_path)}

    async def _handle_service_control(self, verb: str, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        control = getattr(self.daemon.services, verb)
        await asyncio.to_thread(control, params["name"])
        return {"success": True}

    async def _handle_service_status(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["name"], [])
        return {"status": await asyncio.to_thread(self.daemon.services.status, params["name"])}

    # Cron

    async def _handle_cron_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        return {"jobs": await asyncio.to_thread(self.daemon.cron.list)}

    async def _handle_cron_create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["schedule", "command"], [])
        return {"jobs": await asyncio.to_thread(self.daemon.cron.create, params["schedule"], params["command"])}

    async def _handle_cron_delete(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, ["id"], [])
        return {"jobs": await asyncio.to_thread(self.daemon.cron.delete, params["id"])}

    # Host

    async def _handle_system_info(self, params: Dict[str, Any]) -> Dict[str, Any]:
        validate_params(params, [], [])
        info = await asyncio.to_thread(self.daemon.system.collect)
        return info.model_dump()
