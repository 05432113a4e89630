import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from ward.permissions import is_active_account
from ward.services.roster import ENTRY_KINDS, ActiveRosterStore, RosterDiff


class UpdatesConsumer(AsyncWebsocketConsumer):
    GROUP = "updates"

    async def connect(self):
        if not is_active_account(self.scope.get("user")):
            await self.close(code=4003)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "version": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))


class RosterConsumer(AsyncWebsocketConsumer):
    """Streams the active roster to one client.

    Each connection owns an ``ActiveRosterStore``.  Every roster event is
    reconciled once: re-read, diff, then push the snapshot together with
    the reconciled selection.  Clients send ``{"action": "select", "kind",
    "id"}`` to change the selection or ``{"action": "refresh"}``.
    """
    GROUP = "roster"

    async def connect(self):
        if not is_active_account(self.scope.get("user")):
            await self.close(code=4003)
            return
        self.store = ActiveRosterStore()
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        diff = await database_sync_to_async(self.store.fetch)()
        await self.send_snapshot(diff)

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def send_snapshot(self, diff: RosterDiff, event: str = None):
        payload = {"type": "roster.snapshot", "event": event, "diff": diff.to_dict(), **self.store.snapshot()}
        await self.send(json.dumps(payload))

    async def send_error(self, message: str):
        await self.send(json.dumps({"type": "error", "message": message}))

    async def receive(self, text_data=None, bytes_data=None):
        try:
            msg = json.loads(text_data or "{}")
        except ValueError:
            await self.send_error("invalid json")
            return
        if not isinstance(msg, dict):
            await self.send_error("invalid message")
            return
        action = msg.get("action")
        if action == "select":
            kind = msg.get("kind")
            if kind is not None and kind not in ENTRY_KINDS:
                await self.send_error(f"unknown kind: {kind}")
                return
            try:
                entry_id = int(msg["id"]) if kind is not None else None
            except (KeyError, TypeError, ValueError):
                await self.send_error("id is required")
                return
            self.store.select(kind, entry_id)
            await self.send_snapshot(RosterDiff())
        elif action == "refresh":
            diff = await database_sync_to_async(self.store.fetch)(False)
            await self.send_snapshot(diff)
        else:
            await self.send_error(f"unknown action: {action}")

    async def roster_changed(self, event):
        # event: {"type": "roster.changed", "event": "admission_changed", "id": int}
        diff = await database_sync_to_async(self.store.handle_event)(event["event"])
        await self.send_snapshot(diff, event["event"])
