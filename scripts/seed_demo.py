# scripts/seed_demo.py
import os, sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from random import Random

from siteaudit import inspection
from siteaudit.db import Base, engine, SessionLocal
from siteaudit.engine.catalog import get_catalog
from siteaudit.engine.images import ImageResolver
from siteaudit.engine.report import ReportCompiler
from siteaudit.engine.types import NOT_APPLICABLE
from siteaudit.stores import SqlEvaluationStore, SqlProjectStore

DEMO_PROJECTS = [
    {"name": "Riverside Tower A", "location": "12 Quay Street", "engineer": "Dana Reyes", "foreman": "Lee Park"},
    {"name": "Northgate Warehouse", "location": "Industrial Lot 7", "engineer": "Robin Shah", "foreman": "Kai Moreau"},
]


def seed_demo(out_dir: str = ".", seed: int = 7):
    Base.metadata.create_all(bind=engine)
    rnd = Random(seed)
    catalog = get_catalog()
    db = SessionLocal()
    try:
        projects = SqlProjectStore(db)
        evaluations = SqlEvaluationStore(db)
        if projects.list():
            print("Demo data already present.")
            return

        compiler = ReportCompiler(catalog, ImageResolver())
        for data in DEMO_PROJECTS:
            p = inspection.create_project(projects, data)
            for q in catalog.questions:
                score = NOT_APPLICABLE if rnd.random() < 0.1 else rnd.randint(2, 5)
                inspection.update_answer(projects, evaluations, catalog, p.id, q.id, score)
            project, ev = inspection.complete_evaluation(projects, evaluations, catalog, p.id)
            report = inspection.generate_report(projects, evaluations, catalog, compiler, p.id)
            path = os.path.join(out_dir, report.filename)
            with open(path, "w", encoding="utf-8") as f:
                f.write(report.html)
            print(f"Seeded {project.name}: {ev.percentage:.1f}% -> {path}")
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo()
