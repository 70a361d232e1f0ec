# mangastore/db/base.py
# Declarative база для всех моделей магазина. Модели не импортируются здесь,
# иначе появится цикл: каждая модель сама берёт Base из этого модуля.
from sqlalchemy.orm import declarative_base

Base = declarative_base()
