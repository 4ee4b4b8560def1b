# backend/mishmaat/routers/news.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from mishmaat.db import get_db
from mishmaat.models.news import News
from mishmaat.models.platoon import Platoon
from mishmaat.schemas.news import NewsCreate, NewsOut, NewsUpdate

router = APIRouter(prefix="/news", tags=["news"])


@router.get("", response_model=List[NewsOut])
def list_news(db: Session = Depends(get_db)):
    """List announcements, newest first."""
    return db.execute(select(News).order_by(News.created_at.desc())).scalars().all()


@router.post("", response_model=NewsOut, status_code=201)
def create_news(payload: NewsCreate, db: Session = Depends(get_db)):
    if payload.platoon_id is not None and db.get(Platoon, payload.platoon_id) is None:
        raise HTTPException(status_code=400, detail="platoon_id does not exist")
    item = News(title=payload.title.strip(), content=payload.content, platoon_id=payload.platoon_id)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.patch("/{news_id}", response_model=NewsOut)
def update_news(news_id: str, payload: NewsUpdate, db: Session = Depends(get_db)):
    item = db.get(News, news_id)
    if not item:
        raise HTTPException(status_code=404, detail="News item not found")
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in values.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{news_id}", status_code=204)
def delete_news(news_id: str, db: Session = Depends(get_db)):
    item = db.get(News, news_id)
    if not item:
        raise HTTPException(status_code=404, detail="News item not found")
    db.delete(item)
    db.commit()
    return None
