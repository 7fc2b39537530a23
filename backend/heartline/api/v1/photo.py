from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from heartline.core.dependencies import get_face_detector
from heartline.core.responses import ok

router = APIRouter(tags=["photo"])

@router.post("/uploadPhoto")
async def upload_photo(photo: UploadFile = File(...), detect_faces=Depends(get_face_detector)):
    """
    Check that an uploaded photo shows a face.
    Detection runs in the thread pool so the event loop is not blocked.
    """
    image_bytes = await photo.read()
    if not image_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a photo.")

    result = await run_in_threadpool(detect_faces, image_bytes)
    if not result.get("success"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.get("message", "Invalid image."))
    if result.get("faces", 0) == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No face detected.")

    return ok("Face detected.", faces=result["faces"], boxes=result.get("boxes", []))
