from typing import Optional

from fastapi import APIRouter, Body, Depends
from pymongo.database import Database

from database import find_page, get_db, get_documents, parse_object_id, populate, to_public
from listing import PageRequest, build_post_query
from mutations import add_comment, create_post, toggle_like
from schemas import POST_COLLECTION
from security import get_current_user

router = APIRouter(tags=["posts"])

AUTHOR_DETAIL = ("name", "email", "bio", "skills")
USER_SUMMARY = ("name", "email")


def populate_post_refs(db: Database, posts: list) -> list:
    populate(db, posts, "author", AUTHOR_DETAIL)
    populate(db, posts, "comments.user", USER_SUMMARY)
    populate(db, posts, "likes.user", USER_SUMMARY)
    return posts


@router.get("")
def list_posts(page: Optional[str] = None, limit: Optional[str] = None, postType: Optional[str] = None,
               db: Database = Depends(get_db)):
    paging = PageRequest.parse(page, limit)
    posts, total = find_page(db, POST_COLLECTION, build_post_query(post_type=postType), paging.skip, paging.limit)
    populate_post_refs(db, posts)
    return {"posts": to_public(posts), "pagination": paging.describe(len(posts), total)}


@router.post("", status_code=201)
def publish_post(payload: dict = Body(...), user: dict = Depends(get_current_user),
                 db: Database = Depends(get_db)):
    post = create_post(db, payload, user["_id"])
    populate(db, [post], "author", AUTHOR_DETAIL)
    return {"message": "Post created successfully", "post": to_public(post)}


@router.post("/{post_id}/like")
def like_post(post_id: str, user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    result = toggle_like(db, parse_object_id(post_id, "Post not found"), user["_id"])
    return {
        "message": "Post liked" if result.liked else "Post unliked",
        "liked": result.liked,
        "likesCount": result.likes_count,
    }


@router.post("/{post_id}/comment")
def comment_on_post(post_id: str, payload: dict = Body(...), user: dict = Depends(get_current_user),
                    db: Database = Depends(get_db)):
    comment = add_comment(db, parse_object_id(post_id, "Post not found"), user["_id"], payload.get("content"))
    return {"message": "Comment added successfully", "comment": to_public(comment)}


@router.get("/user/{user_id}")
def list_user_posts(user_id: str, db: Database = Depends(get_db)):
    author = parse_object_id(user_id, "User not found")
    posts = get_documents(db, POST_COLLECTION, build_post_query(author=author))
    populate_post_refs(db, posts)
    return {"posts": to_public(posts)}
