from abc import abstractmethod


class Conduit:
    """
    A conduit allows two-way communication of whole text messages with an endpoint.
    Reads block until a message arrives. Both directions fail with an OSError subclass
    once the conduit is closed or the peer goes away.
    """

    @property
    @abstractmethod
    def target(self):
        """ describes the endpoint this conduit talks to. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, messages can be read and written. """
        raise NotImplementedError

    @abstractmethod
    def read_message(self) -> str:
        """ blocks until the next message arrives and returns it. """
        raise NotImplementedError

    @abstractmethod
    def write_message(self, message: str):
        raise NotImplementedError

    @abstractmethod
    def close(self):
        raise NotImplementedError


class ConduitDecorator(Conduit):
    """
    Wraps another conduit and delegates to its methods, so subclasses can
    override some behaviors while keeping others unchanged.
    """

    def __init__(self, decorate: Conduit):
        self.decorate = decorate

    @property
    def target(self):
        return self.decorate.target

    @property
    def open(self) -> bool:
        return self.decorate.open

    def read_message(self) -> str:
        return self.decorate.read_message()

    def write_message(self, message: str):
        self.decorate.write_message(message)

    def close(self):
        self.decorate.close()


class ErrorReportingConduit(ConduitDecorator):
    """
    Calls a handler when reading or writing fails, before re-raising the error.
    """

    def __init__(self, decorate: Conduit, on_error):
        super().__init__(decorate)
        self.on_error = on_error

    def read_message(self) -> str:
        try:
            return super().read_message()
        except OSError:
            self.on_error()
            raise

    def write_message(self, message: str):
        try:
            super().write_message(message)
        except OSError:
            self.on_error()
            raise
