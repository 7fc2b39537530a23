from pydantic import BaseModel, Field

class SwipeRequest(BaseModel):
    targetUserId: int

class JoinCommunityRequest(BaseModel):
    communityId: int

class DirectMessageCreate(BaseModel):
    receiverId: int
    message: str = Field(..., min_length=1, max_length=2000)

class GroupMessageCreate(BaseModel):
    communityId: int
    message: str = Field(..., min_length=1, max_length=2000)
