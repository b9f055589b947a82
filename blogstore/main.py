import logging
import uuid

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from .archive import history
from .database import Base, engine, get_db
from .errors import BlogStoreError
from .log import configure_logging
from .posts import delete_post, get_post, recent_posts, set_draft, update_post
from .publishing import publish_post, revise_post
from .resolver import ResolutionKind, resolve
from .schemas import (
    ArchiveEntryOut,
    DraftUpdate,
    PostCreate,
    PostOut,
    PostRevise,
    PostUpdate,
    PublishedOut,
    RecentPostOut,
    SlugBind,
    SlugOut,
    SlugRename,
)
from .settings import Settings, settings
from .slugs import bind, lookup, rename

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

api = APIRouter(prefix="/api")
pages = APIRouter()


async def handle_blog_store_error(request: Request, exc: BlogStoreError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@api.post("/posts", response_model=PublishedOut, status_code=status.HTTP_201_CREATED)
def publish(payload: PostCreate, db: Session = Depends(get_db)):
    post, slug = publish_post(db, payload)
    return PublishedOut(id=post.id, slug=slug)


@api.get("/posts/{post_id}", response_model=PostOut)
def read_post(post_id: uuid.UUID, db: Session = Depends(get_db)):
    return get_post(db, post_id)


@api.patch("/posts/{post_id}", response_model=PostOut)
def patch_post(post_id: uuid.UUID, payload: PostUpdate, db: Session = Depends(get_db)):
    return update_post(db, post_id, payload)


@api.put("/posts/{post_id}", response_model=PublishedOut)
def revise(post_id: uuid.UUID, payload: PostRevise, db: Session = Depends(get_db)):
    post, slug = revise_post(db, post_id, payload)
    return PublishedOut(id=post.id, slug=slug)


@api.post("/posts/{post_id}/draft", response_model=PostOut)
def change_draft(post_id: uuid.UUID, payload: DraftUpdate, db: Session = Depends(get_db)):
    return set_draft(db, post_id, payload.draft)


@api.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_post(post_id: uuid.UUID, db: Session = Depends(get_db)):
    delete_post(db, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api.get("/posts/{post_id}/history", response_model=list[ArchiveEntryOut])
def post_history(post_id: uuid.UUID, db: Session = Depends(get_db)):
    return history(db, post_id)


@api.post("/slugs", response_model=SlugOut, status_code=status.HTTP_201_CREATED)
def bind_slug(payload: SlugBind, db: Session = Depends(get_db)):
    return bind(db, payload.slug, payload.id)


@api.post("/slugs/{slug}/rename", response_model=SlugOut, status_code=status.HTTP_201_CREATED)
def move_slug(slug: str, payload: SlugRename, db: Session = Depends(get_db)):
    return rename(db, slug, payload.new_slug, payload.id, collapse=payload.collapse)


@api.get("/slugs/{slug}", response_model=SlugOut)
def read_slug(slug: str, db: Session = Depends(get_db)):
    return lookup(db, slug)


@api.get("/recent", response_model=list[RecentPostOut])
def recent(limit: int | None = Query(default=None, ge=1), db: Session = Depends(get_db)):
    return recent_posts(db, limit=limit)


@pages.get("/{slug}", response_model=PostOut)
def page(slug: str, request: Request, db: Session = Depends(get_db)):
    resolution = resolve(db, slug)

    if resolution.kind is ResolutionKind.RESOLVED:
        return resolution.post

    if resolution.kind is ResolutionKind.REDIRECT:
        return RedirectResponse(
            url=request.app.state.settings.page_url(resolution.slug),
            status_code=status.HTTP_301_MOVED_PERMANENTLY,
        )

    if resolution.kind is ResolutionKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Page not found")

    if resolution.kind is ResolutionKind.UNPUBLISHED:
        raise HTTPException(status_code=404, detail="Page not published")

    if resolution.kind is ResolutionKind.MISSING_POST:
        raise HTTPException(status_code=410, detail="Page removed")

    # broken chain or cycle: the redirect graph itself is corrupted
    raise HTTPException(status_code=500, detail=f"Slug directory corrupted: {resolution.kind.value}")


def create_app(app_settings: Settings = settings) -> FastAPI:
    app = FastAPI(title=app_settings.APP_NAME)
    app.state.settings = app_settings
    app.add_exception_handler(BlogStoreError, handle_blog_store_error)
    app.include_router(api)
    # registered last so /api paths are never taken for slugs
    app.include_router(pages, prefix=app_settings.PAGE_ROOT)
    return app


app = create_app()
