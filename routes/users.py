"""
User Rewards Router
Badges and achievements earned by the signed-in user
"""

from fastapi import APIRouter, Depends

from models import User
from storage import Storage, get_storage
from utils.auth_dependencies import get_current_user
from utils.course_assembly import iso, serialize_achievement, serialize_badge

router = APIRouter()


@router.get("/user/badges", summary="Badges earned by the current user")
async def get_user_badges(current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    badges = []
    for user_badge in storage.get_user_badges(current_user.id):
        badge = storage.get_badge(user_badge.badge_id)
        if badge is None:
            continue
        entry = serialize_badge(badge)
        entry["earnedAt"] = iso(user_badge.earned_at)
        badges.append(entry)
    return badges


@router.get("/user/achievements", summary="All achievements with the current user's progress")
async def get_user_achievements(
    current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)
):
    earned = {ua.achievement_id: ua for ua in storage.get_user_achievements(current_user.id)}

    achievements = []
    for achievement in storage.get_achievements():
        entry = serialize_achievement(achievement)
        user_achievement = earned.get(achievement.id)
        entry["progress"] = user_achievement.progress if user_achievement else 0
        entry["completed"] = bool(user_achievement and user_achievement.completed)
        entry["completedAt"] = iso(user_achievement.completed_at) if user_achievement else None
        achievements.append(entry)
    return achievements
