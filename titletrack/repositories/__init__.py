"""
MongoDB repositories, one per collection.

Instances are created by `titletrack.db.mongo.Database`; services reach them
as `db.users`, `db.titles`, `db.groups`, `db.ratings` and `db.comments`.
"""
