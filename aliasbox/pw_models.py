import bcrypt
import sqlalchemy as sa
import unicodedata

from aliasbox import config

_NORMALIZATION_FORM = "NFKC"


class PasswordOracle:
    password = sa.Column(sa.String(128), nullable=True)

    def set_password(self, password):
        password = unicodedata.normalize(_NORMALIZATION_FORM, password)
        salt = bcrypt.gensalt(rounds=config.PASSWORD_BCRYPT_ROUNDS)
        self.password = bcrypt.hashpw(password.encode(), salt).decode()

    def check_password(self, password) -> bool:
        if not self.password or not password:
            return False

        password = unicodedata.normalize(_NORMALIZATION_FORM, password)
        try:
            return bcrypt.checkpw(password.encode(), self.password.encode())
        except ValueError:
            # stored value is not a bcrypt hash
            return False
