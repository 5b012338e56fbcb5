# HTTP blueprints
