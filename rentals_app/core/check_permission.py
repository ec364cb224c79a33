from fastapi import HTTPException

from models.enums import UserRole


class CheckRolePermission:
    async def check_admin(self, current_user):
        if current_user.user_type != UserRole.ADMIN:
            raise HTTPException(status_code=403, detail="Admin access required")

    async def check_student(self, current_user):
        if current_user.user_type != UserRole.STUDENT:
            raise HTTPException(status_code=403, detail="Student access required")

    async def check_owner(self, current_user):
        if current_user.user_type not in {UserRole.OWNER, UserRole.ADMIN}:
            raise HTTPException(
                status_code=403, detail="Property owner access required"
            )

    def is_admin(self, current_user) -> bool:
        return current_user.user_type == UserRole.ADMIN

    async def check_owner_or_admin(self, current_user, owner_id):
        if owner_id != current_user.id and not self.is_admin(current_user):
            raise HTTPException(status_code=403, detail="Access denied")

    async def check_self_or_admin(self, current_user, user_id):
        if user_id != current_user.id and not self.is_admin(current_user):
            raise HTTPException(status_code=403, detail="Access denied")
