from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .prices import PriceBar, Symbol


class FetchSuccess(BaseModel):
    """Bars fetched for one symbol, in time order."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    symbol: Symbol
    bars: List[PriceBar] = Field(default_factory=list)

    @model_validator(mode="after")
    def _bars_match_symbol(self):
        for bar in self.bars:
            if bar.symbol != self.symbol:
                raise ValueError(f"bar for {bar.symbol} in outcome for {self.symbol}")
        return self

    @property
    def ok(self) -> bool:
        return True


class FetchFailure(BaseModel):
    """A symbol whose history could not be fetched."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    symbol: Symbol
    reason: str

    @property
    def ok(self) -> bool:
        return False


FetchOutcome = Annotated[Union[FetchSuccess, FetchFailure], Field(discriminator="kind")]


class FailureNotice(BaseModel):
    """Terminal notice handed to emitters in place of a Summary."""
    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    reason: str
