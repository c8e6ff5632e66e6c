# Services package init
"""
Blue Whale Backend: Services Layer
====================================

Service Inventory:
    - AuthService:          registration and password login
    - UserService:          profiles, user search, follow graph
    - ContentService:       post CRUD, likes, bookmarks
    - DiscoveryService:     feeds (all, global top, local, personalized) and search
    - CommentService:       comments and the comments_count counter
    - NotificationService:  creating notifications and the inbox
    - FileService:          PDF upload validation, storage and cleanup

Every service is a stateless module-level singleton whose methods take the
request's AsyncSession as their first argument; commit/rollback is owned by
get_db_session. The one exception is ContentService.delete_content, which
commits before removing the deleted post's PDF from disk.
"""
