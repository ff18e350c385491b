from devops_export.main import run

run()
