# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic for one part of the blog:
#
#   credential_service - session token issue + bearer authentication
#   author_service     - registration and login
#   post_service       - post creation + paginated feed (cached)
#   comment_service    - append-only comments and replies
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Queries live in ``app.repository``.
