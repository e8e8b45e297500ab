"""Auth domain - registration, login, session tokens and account maintenance"""
