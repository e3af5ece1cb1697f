ACCESS_TOKEN_EXPIRE_MINUTES = 10
REFRESH_TOKEN_EXPIRE_DAYS = 7
JWT_ALGORITHM = "HS256"

BCRYPT_ROUNDS = 10

REFRESH_COOKIE_NAME = "jwt"
REFRESH_COOKIE_MAX_AGE = REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

# Role levels granted at registration. Higher numbers are more privileged.
DEFAULT_ROLES = {"User": 2000}
