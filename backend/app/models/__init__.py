# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# (utilisé par init_db et par main avant l'inclusion des routers).

from app.models.student import Student  # noqa: F401
from app.models.daily_log import DailyLog  # noqa: F401
from app.models.instructor_settings import InstructorSettings  # noqa: F401
