"""
Use Cases

Organized into domain folders:
- auth/: Signup and login
- identity/: Username and email changes
- users/: Profile
- audit/: Security event history
- admin/: Maintenance

Import from the subdirectories.
"""
