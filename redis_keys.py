REDIS_POSTS_KEY = "session:posts:{session_id}" # hash - post id -> post tree as JSON
REDIS_ATTENDANCE_KEY = "session:attendance:{session_id}" # hash - student id -> attendance record as JSON

# **Example post value**
# - `id` = hex uuid
# - `session_id` = `{session_id}`
# - `author` = user id
# - `content` = text
# - `likes` = list of user ids
# - `comments` = list of comments, each with its own `likes` and `replies`
# - `created_at` = ISO timestamp
