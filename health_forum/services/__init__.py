# Services package.
#
# Each module exposes async functions holding the business logic for one
# aggregate:
#
#   post_service  post lifecycle, tag filtering, like/dislike toggle
#   comment_service  comments partitioned by parent post
#   user_service  registration, login, profile lookup
#
# Every function takes a ``ForumStore`` as its first argument and never a
# raw session, so services only see the persistence port.  Ownership
# checks live in ``health_forum.authorization``.
