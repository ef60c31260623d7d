"""Post routes for the feed."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from feedhub.feed.domain.exceptions import ValidationError
from feedhub.feed.domain.services import PostsService
from feedhub.feed.schemas import dto
from feedhub.infra.auth import AuthenticatedUser, get_current_user
from feedhub.settings import settings

router = APIRouter(tags=["feed:posts"])
_service = PostsService()

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _form_text(form, *names: str) -> Optional[str]:
	for name in names:
		for value in form.getlist(name):
			if isinstance(value, str):
				return value
	return None


async def _read_update_body(request: Request) -> tuple[dto.PostUpdateRequest, Optional[StarletteUploadFile]]:
	"""Accept multipart (image as file or URL string) as well as JSON bodies."""
	content_type = request.headers.get("content-type", "").lower()
	if content_type.startswith(_FORM_CONTENT_TYPES):
		form = await request.form()
		image = next(
			(item for item in form.getlist("image") if isinstance(item, StarletteUploadFile) and item.filename),
			None,
		)
		payload = dto.PostUpdateRequest(
			title=_form_text(form, "title"),
			content=_form_text(form, "content"),
			image_url=_form_text(form, "image", "image_url", "imageUrl"),
		)
		return payload, image
	try:
		body = await request.json()
	except ValueError:
		body = {}
	if not isinstance(body, dict):
		body = {}
	try:
		return dto.PostUpdateRequest.model_validate(body), None
	except PydanticValidationError as exc:
		raise ValidationError(
			data=[
				{"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
				for error in exc.errors()
			]
		) from exc


@router.get("/posts", response_model=dto.PostListResponse)
async def list_posts_endpoint(
	page: int = Query(default=1, ge=1),
	per_page: Optional[int] = Query(default=None, ge=1),
) -> dto.PostListResponse:
	posts, total = await _service.list_posts(page=page, per_page=per_page)
	return dto.PostListResponse(
		message="Fetched posts successfully.",
		posts=[dto.PostResponse.from_model(post) for post in posts],
		total_items=total,
		page=page,
		per_page=per_page or settings.feed_page_size,
	)


@router.post("/post", response_model=dto.PostCreatedEnvelope, status_code=201)
async def create_post_endpoint(
	title: Optional[str] = Form(default=None),
	content: Optional[str] = Form(default=None),
	image: Optional[UploadFile] = File(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.PostCreatedEnvelope:
	post = await _service.create_post(auth_user, title=title, content=content, image=image)
	response = dto.PostResponse.from_model(post)
	return dto.PostCreatedEnvelope(
		message="Post created successfully.",
		post=response,
		creator=response.creator,
	)


@router.get("/post/{post_id}", response_model=dto.PostEnvelope)
async def get_post_endpoint(post_id: UUID) -> dto.PostEnvelope:
	post = await _service.get_post(post_id)
	return dto.PostEnvelope(message="Post fetched.", post=dto.PostResponse.from_model(post))


@router.put("/post/{post_id}", response_model=dto.PostEnvelope)
async def update_post_endpoint(
	post_id: UUID,
	request: Request,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.PostEnvelope:
	payload, image = await _read_update_body(request)
	post = await _service.update_post(
		auth_user,
		post_id,
		title=payload.title,
		content=payload.content,
		image=image,
		image_url=payload.image_url,
	)
	return dto.PostEnvelope(message="Post updated.", post=dto.PostResponse.from_model(post))


@router.delete("/post/{post_id}", response_model=dto.MessageResponse)
async def delete_post_endpoint(
	post_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	await _service.delete_post(auth_user, post_id)
	return dto.MessageResponse(message="Deleted post.")
