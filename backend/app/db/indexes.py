# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes(db)를 await로 호출한다.

RECIPES = "recipes"
RECIPE_LIKES = "recipe_likes"

async def ensure_indexes(db):
    # 레시피: _id = md5(normalizedName) 이므로 추가 unique 불필요
    await db[RECIPES].create_index([("likes", -1), ("searchCount", -1)])
    await db[RECIPES].create_index("normalizedName")

    # 좋아요: (사용자, 레시피) 한 쌍에 문서 하나
    await db[RECIPE_LIKES].create_index([("userId", 1), ("recipeId", 1)], unique=True)
    await db[RECIPE_LIKES].create_index([("userId", 1), ("likedAt", -1)])
