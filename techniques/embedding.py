from points import PointEmbedding


class Embedding:

    row_ids = None

    def project(self):
        '''
        This function shall return an embedding of shape (d, n).
        Here, d is the target dimensionality, e.g. a 2D MDS embedding has d=2.
        The value for n is equal to the number of points in the embedding.
        '''
        raise NotImplementedError

    def get_point_embedding(self):
        '''
        Runs project() and maps the result to the row ids, in input order.
        '''
        projection = self.project()
        row_ids = self.row_ids if self.row_ids is not None else range(projection.shape[1])
        return PointEmbedding.from_projection(row_ids, projection)
