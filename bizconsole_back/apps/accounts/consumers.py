from channels.generic.websocket import AsyncJsonWebsocketConsumer


# 사용자 권한 변경 알림 Consumer
# permission_service.notify_permission_changed 가 user_{id} 그룹으로 이벤트 발행
class UserPermissionConsumer(AsyncJsonWebsocketConsumer):
    async def connect(self):
        user = self.scope.get("user")

        if user is None or user.is_anonymous:
            await self.close()
            return

        self.group_name = f"user_{user.id}"
        await self.channel_layer.group_add(
            self.group_name,
            self.channel_name,
        )
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(
                self.group_name,
                self.channel_name,
            )

    async def permission_changed(self, event):
        await self.send_json({
            "type": "PERMISSION_CHANGED"
        })
