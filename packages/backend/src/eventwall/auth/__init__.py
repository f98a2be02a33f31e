"""Authentication.

Learn: Identity comes from an external OAuth provider. By the time a
request reaches us it carries a signed JWT with the user's id and display
name; we only verify it. The display name is what appears as the
uploader / author on the wall.
"""
