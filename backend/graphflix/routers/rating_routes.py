from fastapi import APIRouter, Depends, Query, Response, status

from .. import auth, schemas
from ..services.rating_service import RatingService, get_rating_service

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=schemas.RatingOut, status_code=status.HTTP_201_CREATED)
def upsert_rating(
    rating_in: schemas.RatingCreate,
    response: Response,
    email: str = Depends(auth.get_current_email),
    service: RatingService = Depends(get_rating_service),
):
    """Rate a movie; rating it again overwrites the previous score and comment."""
    rating, created = service.upsert_rating(
        email,
        rating_in.movie_id,
        rating_in.rating,
        rating_in.comment,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return rating


@router.put("/{rating_id}", response_model=schemas.RatingOut)
def update_rating(
    rating_id: int,
    rating_in: schemas.RatingUpdate,
    email: str = Depends(auth.get_current_email),
    service: RatingService = Depends(get_rating_service),
):
    return service.update_rating(rating_id, rating_in.rating, rating_in.comment)


@router.delete("/{rating_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rating(
    rating_id: int,
    email: str = Depends(auth.get_current_email),
    service: RatingService = Depends(get_rating_service),
):
    service.delete_rating(rating_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/user/{user_id}", response_model=schemas.PagedRatingsOut)
def get_user_ratings(
    user_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("timestamp", alias="sortBy"),
    service: RatingService = Depends(get_rating_service),
):
    return schemas.PagedRatingsOut.model_validate(
        service.get_user_ratings(user_id, page, size, sort_by)
    )


@router.get("/movie/{movie_id}", response_model=schemas.PagedRatingsOut)
def get_movie_ratings(
    movie_id: str,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("rating", alias="sortBy"),
    service: RatingService = Depends(get_rating_service),
):
    return schemas.PagedRatingsOut.model_validate(
        service.get_movie_ratings(movie_id, page, size, sort_by)
    )


@router.get("/movie/{movie_id}/average", response_model=schemas.AverageRatingOut)
def get_average_rating(
    movie_id: str,
    service: RatingService = Depends(get_rating_service),
):
    return service.get_average_rating(movie_id)


@router.get("/{rating_id}", response_model=schemas.RatingOut)
def get_rating(
    rating_id: int,
    service: RatingService = Depends(get_rating_service),
):
    return service.get_rating(rating_id)
