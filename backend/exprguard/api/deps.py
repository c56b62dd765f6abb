from typing import Annotated

from fastapi import Depends, Request

from exprguard.engines.expression import SafeEvaluator


def get_evaluator(request: Request) -> SafeEvaluator:
    """The application-owned evaluator (see exprguard.main)."""
    return request.app.state.evaluator


EvaluatorDep = Annotated[SafeEvaluator, Depends(get_evaluator)]
