"""매칭 엔진 예외"""


class ContractViolation(ValueError):
    """
    호출자 데이터의 결함 (정상적인 빈 결과가 아님)

    예: 공유 기간 축에 맞지 않는 코퍼스 시계열,
    길이가 다른 두 곡선을 DTW에 넘긴 경우
    """

    def __init__(self, message: str, entity_key: str = None):
        self.entity_key = entity_key
        if entity_key is not None:
            message = f"{entity_key}: {message}"
        super().__init__(message)
