import os
from os.path import join

root_dir = os.path.dirname(os.path.abspath(__file__))

users_table_name = "users"
recipes_table_name = "recipes"

log_dir = join(root_dir, "logs")
os.makedirs(log_dir, exist_ok=True)

log_file_path = join(log_dir, "backend.log")

default_database_path = join(root_dir, "data", "recipes.db")
