"""Lua scripts evaluated atomically by Redis.

Every script that can miss an album returns the sentinel NOT_FOUND (-1)
instead of raising an error reply, so callers check a single convention.
Redis does not roll back a script that fails halfway, so each script checks
key types and field values before its first write and returns
INVALID_LAYOUT (-2) without writing when they are wrong.
"""

NOT_FOUND = -1
INVALID_LAYOUT = -2

# Shared prelude. KEYS[1] album hash, KEYS[2] ranking set.
_KEY_TYPE = """
local function key_type(key)
    local t = redis.call('TYPE', key)
    if type(t) == 'table' then
        t = t['ok']
    end
    return t
end
local ranking_type = key_type(KEYS[2])
local ranking_ok = ranking_type == 'zset' or ranking_type == 'none'
"""

# ARGV[1] album id.
# Returns {likes, chart score} after the increment, {-1, -1} when the album
# is missing, or {-2, -2} when the layout is broken. Nothing is written in
# the last two cases.
INCREMENT_LIKES = _KEY_TYPE + """
local album_type = key_type(KEYS[1])
if album_type == 'none' then
    return {-1, -1}
end
if album_type ~= 'hash' or not ranking_ok then
    return {-2, -2}
end
local current = tonumber(redis.call('HGET', KEYS[1], 'likes'))
if current == nil or current ~= math.floor(current) then
    return {-2, -2}
end
local likes = redis.call('HINCRBY', KEYS[1], 'likes', 1)
local score = tonumber(redis.call('ZINCRBY', KEYS[2], 1, ARGV[1]))
return {likes, score}
"""

# ARGV[1] album id.
# Returns 1, -1 when the album is missing, or -2 when the layout is broken.
DELETE_ALBUM = _KEY_TYPE + """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return -1
end
if not ranking_ok then
    return -2
end
redis.call('DEL', KEYS[1])
redis.call('ZREM', KEYS[2], ARGV[1])
return 1
"""

# ARGV[1] album id, ARGV[2] likes, ARGV[3..] hash field/value pairs.
# Returns 1 when added, 0 when the album already exists, or -2 when the
# layout is broken.
ADD_ALBUM_IF_ABSENT = _KEY_TYPE + """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
if not ranking_ok then
    return -2
end
for i = 3, #ARGV, 2 do
    redis.call('HSET', KEYS[1], ARGV[i], ARGV[i + 1])
end
redis.call('ZADD', KEYS[2], ARGV[2], ARGV[1])
return 1
"""

# KEYS[1] ranking set; ARGV[1] album key prefix, ARGV[2] number of albums.
# Returns a flat array: id, score, {HGETALL fields...}, id, score, {...}, ...
# Album hashes are addressed through the prefix, so this assumes a single node.
TOP_ALBUMS = """
local ranked = redis.call('ZREVRANGE', KEYS[1], 0, tonumber(ARGV[2]) - 1, 'WITHSCORES')
local result = {}
for i = 1, #ranked, 2 do
    local id = ranked[i]
    result[#result + 1] = id
    result[#result + 1] = ranked[i + 1]
    result[#result + 1] = redis.call('HGETALL', ARGV[1] .. id)
end
return result
"""
