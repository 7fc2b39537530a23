from sqladmin import ModelView
from heartline.db.models.user import User
from heartline.db.models.swipe import Swipe, Match
from heartline.db.models.image import UserImage
from heartline.db.models.community import Community, CommunityMember
from heartline.db.models.chat_data import ChatMessage

class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.phone_or_email, User.name, User.gender, User.role, User.is_verified, User.created_at]
    column_searchable_list = [User.phone_or_email, User.name]
    column_sortable_list = [User.created_at]
    column_details_exclude_list = [User.password, User.verification_code]
    form_excluded_columns = [User.password, User.verification_code, User.otp_expires]
    icon = "fa-solid fa-user"

class SwipeAdmin(ModelView, model=Swipe):
    column_list = [Swipe.id, Swipe.swiper_id, Swipe.target_id, Swipe.direction, Swipe.created_at]
    column_sortable_list = [Swipe.created_at]
    icon = "fa-solid fa-hand-pointer"

class MatchAdmin(ModelView, model=Match):
    column_list = [Match.id, Match.user1_id, Match.user2_id, Match.created_at]
    column_sortable_list = [Match.created_at]
    icon = "fa-solid fa-heart"

class UserImageAdmin(ModelView, model=UserImage):
    column_list = [UserImage.id, UserImage.user_id, UserImage.key, UserImage.content_type, UserImage.created_at]
    icon = "fa-solid fa-image"

class CommunityAdmin(ModelView, model=Community):
    column_list = [Community.id, Community.name, Community.description]
    column_searchable_list = [Community.name]
    icon = "fa-solid fa-users"

class CommunityMemberAdmin(ModelView, model=CommunityMember):
    column_list = [CommunityMember.id, CommunityMember.community_id, CommunityMember.user_id, CommunityMember.joined_at]
    icon = "fa-solid fa-user-plus"

class ChatMessageAdmin(ModelView, model=ChatMessage):
    column_list = [ChatMessage.id, ChatMessage.sender_id, ChatMessage.community_id, ChatMessage.message, ChatMessage.created_at]
    column_searchable_list = [ChatMessage.message]
    column_sortable_list = [ChatMessage.created_at]
    icon = "fa-solid fa-comments"

ADMIN_VIEWS = [
    UserAdmin,
    SwipeAdmin,
    MatchAdmin,
    UserImageAdmin,
    CommunityAdmin,
    CommunityMemberAdmin,
    ChatMessageAdmin,
]
