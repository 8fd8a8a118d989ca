import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from portal.services.roster import UPDATES_GROUP, roster_revision


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Roster refresh notices.

    On connect the client gets the current revision so that after a
    reconnect it can tell whether it missed a replace.  Afterwards every
    replace is pushed as ``broadcast.refresh``; the client then reloads the
    roster and resets its navigator.
    """
    GROUP = UPDATES_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send_revision('welcome')

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # the only client message is a revision query
        try:
            message = json.loads(text_data or '{}')
        except ValueError:
            return
        if isinstance(message, dict) and message.get('type') == 'sync':
            await self.send_revision('revision')

    async def send_revision(self, kind):
        revision = await database_sync_to_async(roster_revision)()
        await self.send(json.dumps({"type": kind, "revision": revision}))

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "version": revision, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
