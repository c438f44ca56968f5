"""QR Attendance Station package.

Feature modules (scanning, sections, attendance, dashboard) sit behind a thin
Flask controller layer; the backend API is reached through HTTP repositories.
"""
