"""
Postboard Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - UserService: registration, login, current-user profile
    - PostService: post CRUD, view counting, recent tags
    - FileService: upload validation, storage and lookup

Instances are built once by the app factory and kept on `app.state`;
routes reach them through postboard.dependencies.
"""
